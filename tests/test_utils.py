"""Unit tests for slug, id and JSON helpers."""

from datetime import datetime, timezone

from bson import ObjectId
from flask import json

from utils import public_user, slugify, to_object_id


def test_slugify():
    assert slugify("My Product") == "my-product"
    assert slugify("  Café & Crème  ") == "cafe-creme"
    assert slugify("Product 2024 v2!") == "product-2024-v2"


def test_to_object_id():
    oid = ObjectId()

    assert to_object_id(oid) is oid
    assert to_object_id(str(oid)) == oid
    assert to_object_id("invalid-id") is None
    assert to_object_id(None) is None


def test_public_user_drops_secrets():
    user = {"_id": 1, "name": "A", "password": "h", "answer": "x"}

    assert public_user(user) == {"_id": 1, "name": "A"}


def test_json_provider_renders_object_ids_and_datetimes(app):
    oid = ObjectId()
    when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    with app.app_context():
        payload = json.loads(json.dumps({"_id": oid, "createdAt": when}))

    assert payload == {"_id": str(oid), "createdAt": "2024-01-02T03:04:05+00:00"}
