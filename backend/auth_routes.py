from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import create_access_token
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from auth_helper import compare_password, hash_password
from auth_middleware import is_admin, require_sign_in
from extensions import mongo
from models import ValidationError, build_user, touch, validate_order_status
from utils import error_body, public_user, to_object_id

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")

REGISTER_FIELDS = (
    ("name", "Name is Required"),
    ("email", "Email is Required"),
    ("password", "Password is Required"),
    ("phone", "Phone number is Required"),
    ("address", "Address is Required"),
    ("answer", "Answer is Required"),
)
STRING_FIELDS = ("email", "password", "answer")


def populate_orders(orders):
    """Replace product ids with product docs (no photo) and buyer id with {_id, name}."""
    product_ids = {pid for order in orders for pid in order.get("products", [])}
    buyer_ids = {order["buyer"] for order in orders if order.get("buyer")}
    products = {}
    if product_ids:
        products = {p["_id"]: p for p in mongo.db.products.find({"_id": {"$in": list(product_ids)}}, {"photo": 0})}
    buyers = {}
    if buyer_ids:
        buyers = {u["_id"]: u for u in mongo.db.users.find({"_id": {"$in": list(buyer_ids)}}, {"name": 1})}
    for order in orders:
        order["products"] = [products[pid] for pid in order.get("products", []) if pid in products]
        order["buyer"] = buyers.get(order.get("buyer"), order.get("buyer"))
    return orders


## --- Register / Login ---
@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    for field, message in REGISTER_FIELDS:
        value = data.get(field)
        # address may be an object; email, password and answer must be strings
        if value in (None, "") or (field in STRING_FIELDS and not isinstance(value, str)):
            return jsonify({"message": message}), 400
    try:
        if mongo.db.users.find_one({"email": data["email"]}):
            return jsonify({"success": False, "message": "Already Register please login"}), 409
        user = build_user({**data, "password": hash_password(data["password"]), "role": 0})
        result = mongo.db.users.insert_one(user)
        user["_id"] = result.inserted_id
    except (PyMongoError, ValidationError) as exc:
        current_app.logger.exception("Registration failed")
        return jsonify(error_body("Error in Registration", exc)), 500
    return jsonify({
        "success": True,
        "message": "User Register Successfully",
        "user": public_user(user),
    }), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not (email and isinstance(email, str) and password and isinstance(password, str)):
        return jsonify({"success": False, "message": "Invalid email or password"}), 404
    try:
        user = mongo.db.users.find_one({"email": email})
    except PyMongoError as exc:
        current_app.logger.exception("Login failed")
        return jsonify(error_body("Error in login", exc)), 500
    if not user:
        return jsonify({"success": False, "message": "Email is not registered"}), 404
    if not compare_password(password, user.get("password")):
        return jsonify({"success": False, "message": "Invalid Password"}), 401

    token = create_access_token(identity=str(user["_id"]))
    return jsonify({
        "success": True,
        "message": "login successfully",
        "user": {
            "_id": user["_id"],
            "name": user.get("name"),
            "email": user.get("email"),
            "phone": user.get("phone"),
            "address": user.get("address"),
            "role": user.get("role", 0),
        },
        "token": token,
    }), 200


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    answer = data.get("answer")
    new_password = data.get("newPassword")
    if not email or not isinstance(email, str):
        return jsonify({"message": "Email is required"}), 400
    if not answer or not isinstance(answer, str):
        return jsonify({"message": "answer is required"}), 400
    if not new_password or not isinstance(new_password, str):
        return jsonify({"message": "New Password is required"}), 400
    try:
        user = mongo.db.users.find_one({"email": email, "answer": answer})
        if not user:
            return jsonify({"success": False, "message": "Wrong Email Or Answer"}), 404
        mongo.db.users.update_one(
            {"_id": user["_id"]},
            {"$set": touch({"password": hash_password(new_password)})},
        )
    except PyMongoError as exc:
        current_app.logger.exception("Password reset failed")
        return jsonify(error_body("Something went wrong", exc)), 500
    return jsonify({"success": True, "message": "Password Reset Successfully"}), 200


## --- Protected checks ---
@auth_bp.route("/test", methods=["GET"])
@require_sign_in
@is_admin
def protected_test():
    return "Protected Routes"


@auth_bp.route("/user-auth", methods=["GET"])
@require_sign_in
def user_auth():
    return jsonify({"ok": True})


@auth_bp.route("/admin-auth", methods=["GET"])
@require_sign_in
@is_admin
def admin_auth():
    return jsonify({"ok": True})


## --- Profile ---
@auth_bp.route("/profile", methods=["PUT"])
@require_sign_in
def update_profile():
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    if password and (not isinstance(password, str) or len(password) < 6):
        return jsonify({"error": "Password is required and 6 character long"}), 400
    try:
        user = mongo.db.users.find_one({"_id": to_object_id(g.user["_id"])})
        if not user:
            return jsonify({"success": False, "message": "User not found"}), 404
        changes = {
            "name": data.get("name") or user.get("name"),
            "password": hash_password(password) if password else user.get("password"),
            "phone": data.get("phone") or user.get("phone"),
            "address": data.get("address") or user.get("address"),
        }
        updated = mongo.db.users.find_one_and_update(
            {"_id": user["_id"]},
            {"$set": touch(changes)},
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as exc:
        current_app.logger.exception("Profile update failed")
        return jsonify(error_body("Error While Updating profile", exc)), 400
    return jsonify({
        "success": True,
        "message": "Profile Updated Successfully",
        "updatedUser": public_user(updated),
    }), 200


## --- Orders ---
@auth_bp.route("/orders", methods=["GET"])
@require_sign_in
def get_orders():
    try:
        orders = list(mongo.db.orders.find({"buyer": to_object_id(g.user["_id"])}))
        populate_orders(orders)
    except PyMongoError as exc:
        current_app.logger.exception("Fetching orders failed")
        return jsonify(error_body("Error While Getting Orders", exc)), 500
    return jsonify(orders)


@auth_bp.route("/all-orders", methods=["GET"])
@require_sign_in
@is_admin
def get_all_orders():
    try:
        orders = list(mongo.db.orders.find({}).sort("createdAt", DESCENDING))
        populate_orders(orders)
    except PyMongoError as exc:
        current_app.logger.exception("Fetching all orders failed")
        return jsonify(error_body("Error While Getting Orders", exc)), 500
    return jsonify(orders)


@auth_bp.route("/order-status/<order_id>", methods=["PUT"])
@require_sign_in
@is_admin
def update_order_status(order_id):
    data = request.get_json(silent=True) or {}
    try:
        status = validate_order_status(data.get("status"))
    except ValidationError:
        return jsonify({"success": False, "message": "Invalid order status"}), 400
    oid = to_object_id(order_id)
    try:
        order = mongo.db.orders.find_one_and_update(
            {"_id": oid},
            {"$set": touch({"status": status})},
            return_document=ReturnDocument.AFTER,
        ) if oid else None
    except PyMongoError as exc:
        current_app.logger.exception("Order status update failed")
        return jsonify(error_body("Error While Updating Order", exc)), 500
    if not order:
        return jsonify({"success": False, "message": "Order not found"}), 404
    return jsonify(order)


## --- Users (admin) ---
@auth_bp.route("/all-users", methods=["GET"])
@require_sign_in
@is_admin
def get_all_users():
    try:
        users = list(mongo.db.users.find({}, {"password": 0, "answer": 0}).sort("createdAt", DESCENDING))
    except PyMongoError as exc:
        current_app.logger.exception("Fetching users failed")
        return jsonify(error_body("Error While Getting Users", exc)), 500
    return jsonify({"success": True, "users": users})
