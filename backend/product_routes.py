import io
import math
import re
from decimal import Decimal, InvalidOperation

from braintree.exceptions.braintree_error import BraintreeError
from flask import Blueprint, current_app, g, jsonify, request, send_file
from PIL import Image
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from auth_middleware import is_admin, require_sign_in
from braintree_gateway import charge, generate_client_token
from extensions import mongo
from models import MAX_PHOTO_BYTES, ValidationError, build_order, build_product, touch
from utils import error_body, slugify, to_object_id

product_bp = Blueprint("product", __name__, url_prefix="/api/v1/product")

HOME_PAGE_LIMIT = 12
PER_PAGE = 6
RELATED_LIMIT = 3
NO_PHOTO = {"photo": 0}

PRODUCT_FIELDS = (
    ("name", "Name is Required"),
    ("description", "Description is Required"),
    ("price", "Price is Required"),
    ("category", "Category is Required"),
    ("quantity", "Quantity is Required"),
)


def detect_image_type(data):
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            return Image.MIME.get(image.format)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return None


def parse_product_form(form, upload):
    """Validate a multipart product form; returns (fields, error message)."""
    for field, message in PRODUCT_FIELDS:
        if not (form.get(field) or "").strip():
            return None, message
    try:
        price = float(form["price"])
    except ValueError:
        return None, "Price must be a number"
    if not math.isfinite(price) or price < 0:
        return None, "Price must be a number"
    try:
        quantity = int(form["quantity"])
    except ValueError:
        return None, "Quantity must be a whole number"
    if quantity < 0:
        return None, "Quantity must be a whole number"
    category = to_object_id(form["category"])
    if not category:
        return None, "Category is invalid"

    fields = {
        "name": form["name"],
        "slug": slugify(form["name"]),
        "description": form["description"],
        "price": price,
        "category": category,
        "quantity": quantity,
    }
    shipping = form.get("shipping")
    if shipping is not None:
        fields["shipping"] = shipping.strip().lower() in ("1", "true", "yes")

    if upload and upload.filename:
        data = upload.read()
        if len(data) > MAX_PHOTO_BYTES:
            return None, "Photo should be less than 1mb"
        content_type = detect_image_type(data)
        if not content_type:
            return None, "Photo must be a valid image"
        fields["photo"] = {"data": data, "contentType": content_type}
    return fields, None


def populate_category(products):
    category_ids = {p["category"] for p in products if p.get("category")}
    categories = {}
    if category_ids:
        categories = {c["_id"]: c for c in mongo.db.categories.find({"_id": {"$in": list(category_ids)}})}
    for product in products:
        product["category"] = categories.get(product.get("category"), product.get("category"))
    return products


def cart_total(cart):
    """Exact decimal sum of item prices, or None when any price is unusable."""
    total = Decimal("0")
    for item in cart:
        price = item.get("price") if isinstance(item, dict) else None
        if isinstance(price, bool):
            return None
        try:
            value = Decimal(str(price).strip())
        except InvalidOperation:
            return None
        if not value.is_finite() or value < 0:
            return None
        total += value
    try:
        return total.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


## --- CRUD Products ---
@product_bp.route("/create-product", methods=["POST"])
@require_sign_in
@is_admin
def create_product():
    fields, error = parse_product_form(request.form, request.files.get("photo"))
    if error:
        return jsonify({"error": error}), 400
    try:
        product = build_product(fields)
        result = mongo.db.products.insert_one(product)
        product["_id"] = result.inserted_id
    except (PyMongoError, ValidationError) as exc:
        current_app.logger.exception("Creating product failed")
        return jsonify(error_body("Error in creating product", exc)), 500
    product.pop("photo", None)
    return jsonify({"success": True, "message": "Product Created Successfully", "products": product}), 201


@product_bp.route("/update-product/<pid>", methods=["PUT"])
@require_sign_in
@is_admin
def update_product(pid):
    fields, error = parse_product_form(request.form, request.files.get("photo"))
    if error:
        return jsonify({"error": error}), 400
    oid = to_object_id(pid)
    try:
        product = mongo.db.products.find_one_and_update(
            {"_id": oid},
            {"$set": touch(fields)},
            projection=NO_PHOTO,
            return_document=ReturnDocument.AFTER,
        ) if oid else None
    except PyMongoError as exc:
        current_app.logger.exception("Updating product failed")
        return jsonify(error_body("Error in updating product", exc)), 500
    if not product:
        return jsonify({"success": False, "message": "Product not found"}), 404
    return jsonify({"success": True, "message": "Product Updated Successfully", "products": product}), 200


@product_bp.route("/get-product", methods=["GET"])
def get_products():
    try:
        products = list(mongo.db.products.find({}, NO_PHOTO).sort("createdAt", DESCENDING).limit(HOME_PAGE_LIMIT))
        populate_category(products)
    except PyMongoError as exc:
        current_app.logger.exception("Listing products failed")
        return jsonify(error_body("Error in getting products", exc)), 500
    return jsonify({
        "success": True,
        "countTotal": len(products),
        "message": "All Products",
        "products": products,
    }), 200


@product_bp.route("/get-product/<slug>", methods=["GET"])
def get_product(slug):
    try:
        product = mongo.db.products.find_one({"slug": slug}, NO_PHOTO)
        if product:
            populate_category([product])
    except PyMongoError as exc:
        current_app.logger.exception("Fetching product failed")
        return jsonify(error_body("Error while getting single product", exc)), 500
    if not product:
        return jsonify({"success": False, "message": "Product not found"}), 404
    return jsonify({"success": True, "message": "Single Product Fetched", "product": product}), 200


@product_bp.route("/product-photo/<pid>", methods=["GET"])
def product_photo(pid):
    oid = to_object_id(pid)
    try:
        product = mongo.db.products.find_one({"_id": oid}, {"photo": 1}) if oid else None
    except PyMongoError as exc:
        current_app.logger.exception("Fetching product photo failed")
        return jsonify(error_body("Error while getting photo", exc)), 500
    photo = (product or {}).get("photo") or {}
    if not photo.get("data"):
        return jsonify({"success": False, "message": "Photo not found"}), 404
    return send_file(io.BytesIO(photo["data"]), mimetype=photo.get("contentType") or "application/octet-stream")


@product_bp.route("/delete-product/<pid>", methods=["DELETE"])
@require_sign_in
@is_admin
def delete_product(pid):
    oid = to_object_id(pid)
    try:
        deleted = mongo.db.products.find_one_and_delete({"_id": oid}, projection=NO_PHOTO) if oid else None
    except PyMongoError as exc:
        current_app.logger.exception("Deleting product failed")
        return jsonify(error_body("Error while deleting product", exc)), 500
    if not deleted:
        return jsonify({"success": False, "message": "Product not found"}), 404
    return jsonify({"success": True, "message": "Product Deleted successfully"}), 200


## --- Browsing ---
@product_bp.route("/product-filters", methods=["POST"])
def product_filters():
    data = request.get_json(silent=True) or {}
    checked = data.get("checked") or []
    radio = data.get("radio") or []
    if not isinstance(checked, list):
        return jsonify({"success": False, "message": "Invalid category filter"}), 400
    if not isinstance(radio, list):
        return jsonify({"success": False, "message": "Invalid price range"}), 400
    args = {}
    if checked:
        category_ids = [to_object_id(c) for c in checked]
        if None in category_ids:
            return jsonify({"success": False, "message": "Invalid category filter"}), 400
        args["category"] = {"$in": category_ids}
    if radio:
        try:
            low, high = (float(v) for v in radio)
        except (TypeError, ValueError):
            return jsonify({"success": False, "message": "Invalid price range"}), 400
        args["price"] = {"$gte": low, "$lte": high}
    try:
        products = list(mongo.db.products.find(args, NO_PHOTO))
    except PyMongoError as exc:
        current_app.logger.exception("Filtering products failed")
        return jsonify(error_body("Error while Filtering Products", exc)), 400
    return jsonify({"success": True, "products": products}), 200


@product_bp.route("/product-count", methods=["GET"])
def product_count():
    try:
        total = mongo.db.products.estimated_document_count()
    except PyMongoError as exc:
        current_app.logger.exception("Counting products failed")
        return jsonify(error_body("Error in product count", exc)), 400
    return jsonify({"success": True, "total": total}), 200


@product_bp.route("/product-list", defaults={"page": 1}, methods=["GET"])
@product_bp.route("/product-list/<int:page>", methods=["GET"])
def product_list(page):
    page = max(page, 1)
    try:
        products = list(
            mongo.db.products.find({}, NO_PHOTO)
            .sort("createdAt", DESCENDING)
            .skip((page - 1) * PER_PAGE)
            .limit(PER_PAGE)
        )
    except PyMongoError as exc:
        current_app.logger.exception("Paging products failed")
        return jsonify(error_body("Error in product list", exc)), 400
    return jsonify({"success": True, "products": products}), 200


@product_bp.route("/search/<keyword>", methods=["GET"])
def search_products(keyword):
    pattern = re.escape(keyword)
    try:
        products = list(mongo.db.products.find(
            {"$or": [
                {"name": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}},
            ]},
            NO_PHOTO,
        ))
    except PyMongoError as exc:
        current_app.logger.exception("Searching products failed")
        return jsonify(error_body("Error In Search Product API", exc)), 400
    return jsonify(products)


@product_bp.route("/related-product/<pid>/<cid>", methods=["GET"])
def related_products(pid, cid):
    product_id = to_object_id(pid)
    category_id = to_object_id(cid)
    if not product_id or not category_id:
        return jsonify({"success": True, "products": []}), 200
    try:
        products = list(
            mongo.db.products.find({"category": category_id, "_id": {"$ne": product_id}}, NO_PHOTO)
            .limit(RELATED_LIMIT)
        )
        populate_category(products)
    except PyMongoError as exc:
        current_app.logger.exception("Fetching related products failed")
        return jsonify(error_body("Error while getting related product", exc)), 400
    return jsonify({"success": True, "products": products}), 200


@product_bp.route("/product-category/<slug>", methods=["GET"])
def products_by_category(slug):
    try:
        category = mongo.db.categories.find_one({"slug": slug})
        if not category:
            return jsonify({"success": False, "message": "Category not found"}), 404
        products = list(mongo.db.products.find({"category": category["_id"]}, NO_PHOTO))
        for product in products:
            product["category"] = category
    except PyMongoError as exc:
        current_app.logger.exception("Fetching products by category failed")
        return jsonify(error_body("Error While Getting products", exc)), 400
    return jsonify({"success": True, "category": category, "products": products}), 200


## --- Payments ---
@product_bp.route("/braintree/token", methods=["GET"])
def braintree_token():
    try:
        token = generate_client_token()
    except BraintreeError:
        current_app.logger.exception("Braintree token generation failed")
        return jsonify({"error": "Braintree token generation failed"}), 500
    return jsonify({"clientToken": token})


@product_bp.route("/braintree/payment", methods=["POST"])
@require_sign_in
def braintree_payment():
    buyer = to_object_id((g.get("user") or {}).get("_id"))
    if not buyer:
        return jsonify({"error": "Unauthorized"}), 401
    data = request.get_json(silent=True) or {}
    nonce = data.get("nonce")
    cart = data.get("cart")
    if not nonce:
        return jsonify({"error": "Missing payment nonce"}), 400
    if not isinstance(cart, list):
        return jsonify({"error": "Cart must be an array"}), 400
    if not cart:
        return jsonify({"error": "Cart cannot be empty"}), 400
    total = cart_total(cart)
    if total is None:
        return jsonify({"error": "Invalid item price in cart"}), 400
    product_ids = [to_object_id(item.get("_id")) for item in cart]
    if None in product_ids:
        return jsonify({"error": "Invalid product in cart"}), 400

    amount = str(total)
    try:
        result = charge(amount, nonce)
    except BraintreeError as exc:
        current_app.logger.exception("Braintree sale failed")
        return jsonify({"error": str(exc)}), 500
    if not result.is_success:
        current_app.logger.warning("Braintree sale declined: %s", result.message)
        return jsonify({"error": result.message}), 500

    payment = {
        "success": True,
        "transactionId": result.transaction.id,
        "status": result.transaction.status,
        "amount": amount,
    }
    try:
        mongo.db.orders.insert_one(build_order(product_ids, payment, buyer))
    except (PyMongoError, ValidationError):
        current_app.logger.exception("Order creation failed after payment %s", result.transaction.id)
        return jsonify({"error": "Order creation failed"}), 500
    return jsonify({"ok": True})
