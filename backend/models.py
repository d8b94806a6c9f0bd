"""
Document shapes for the storefront collections in MongoDB.
No ODM here: documents are plain dicts, these builders only validate
required fields / enums and stamp timestamps before insert.

Example user document:
{
    "name": "Budi",
    "email": "budi@example.com",
    "password": "<bcrypt hash>",
    "phone": "08123456789",
    "address": "Jl. Merdeka 1",
    "answer": "football",
    "role": 0,
    "createdAt": datetime,
    "updatedAt": datetime
}

Example order document:
{
    "products": [ObjectId, ObjectId],
    "payment": {"success": True, "transactionId": "abc", ...},
    "buyer": ObjectId,
    "status": "Not Process"
}
"""
from datetime import datetime, timezone

from bson import ObjectId

USERS = "users"
CATEGORIES = "categories"
PRODUCTS = "products"
ORDERS = "orders"

USER_ROLES = (0, 1)
ADMIN_ROLE = 1
ORDER_STATUSES = ("Not Process", "Processing", "Shipped", "deliverd", "cancel")
DEFAULT_ORDER_STATUS = "Not Process"
MAX_PHOTO_BYTES = 1000000


class ValidationError(ValueError):
    """Raised by the builders; ``errors`` maps field name to the failed rule."""

    def __init__(self, errors):
        self.errors = errors
        fields = ", ".join(f"{field} ({kind})" for field, kind in errors.items())
        super().__init__(f"Validation failed: {fields}")


def _now():
    return datetime.now(timezone.utc)


def _missing(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _check_required(doc, fields):
    errors = {}
    for field in fields:
        if _missing(doc.get(field)):
            errors[field] = "required"
    return errors


def stamp(doc):
    now = _now()
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    return doc


def touch(update):
    update["updatedAt"] = _now()
    return update


## --- User ---
def build_user(data):
    name = data.get("name")
    if isinstance(name, str):
        name = name.strip()
    doc = {
        "name": name,
        "email": data.get("email"),
        "password": data.get("password"),
        "phone": data.get("phone"),
        "address": data.get("address"),
        "answer": data.get("answer"),
        "role": data.get("role", 0),
    }
    errors = _check_required(doc, ["name", "email", "password", "phone", "address", "answer"])
    if doc["role"] not in USER_ROLES or isinstance(doc["role"], bool):
        errors["role"] = "enum"
    if errors:
        raise ValidationError(errors)
    return stamp(doc)


## --- Category ---
def build_category(name, slug):
    doc = {"name": name, "slug": slug.lower() if isinstance(slug, str) else slug}
    errors = _check_required(doc, ["name", "slug"])
    if errors:
        raise ValidationError(errors)
    return stamp(doc)


## --- Product ---
def build_product(data):
    doc = {
        "name": data.get("name"),
        "slug": data.get("slug"),
        "description": data.get("description"),
        "price": data.get("price"),
        "category": data.get("category"),
        "quantity": data.get("quantity"),
    }
    errors = _check_required(doc, list(doc))
    price = doc["price"]
    if "price" not in errors and (not isinstance(price, (int, float)) or isinstance(price, bool) or price < 0):
        errors["price"] = "invalid"
    quantity = doc["quantity"]
    if "quantity" not in errors and (not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0):
        errors["quantity"] = "invalid"
    if "category" not in errors and not isinstance(doc["category"], ObjectId):
        errors["category"] = "invalid"
    if data.get("shipping") is not None:
        doc["shipping"] = bool(data["shipping"])
    photo = data.get("photo")
    if photo:
        if len(photo.get("data") or b"") > MAX_PHOTO_BYTES:
            errors["photo"] = "invalid"
        doc["photo"] = {"data": photo.get("data"), "contentType": photo.get("contentType")}
    if errors:
        raise ValidationError(errors)
    return stamp(doc)


## --- Order ---
def validate_order_status(status):
    if status not in ORDER_STATUSES:
        raise ValidationError({"status": "enum"})
    return status


def build_order(products, payment, buyer, status=DEFAULT_ORDER_STATUS):
    if not all(isinstance(pid, ObjectId) for pid in products):
        raise ValidationError({"products": "invalid"})
    if not isinstance(buyer, ObjectId):
        raise ValidationError({"buyer": "invalid"})
    doc = {
        "products": list(products),
        "payment": dict(payment or {}),
        "buyer": buyer,
        "status": validate_order_status(status),
    }
    return stamp(doc)
