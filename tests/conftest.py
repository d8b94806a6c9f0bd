"""Shared fixtures: Flask test client, a Mock database and signed tokens."""

import io
from unittest.mock import Mock

import pytest
from bson import ObjectId
from flask_jwt_extended import create_access_token
from PIL import Image

from app import app as flask_app
from extensions import mongo

USER_ID = ObjectId()
ADMIN_ID = ObjectId()


@pytest.fixture
def app():
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mock_db(monkeypatch):
    """Replace mongo.db with a Mock; tests set the return values they need."""
    db = Mock()
    monkeypatch.setattr(mongo, "db", db, raising=False)
    return db


def make_token(app, user_id):
    with app.app_context():
        return create_access_token(identity=str(user_id))


@pytest.fixture
def user_headers(app):
    return {"Authorization": make_token(app, USER_ID)}


@pytest.fixture
def admin_headers(app, mock_db):
    mock_db.users.find_one.return_value = {"_id": ADMIN_ID, "role": 1}
    return {"Authorization": make_token(app, ADMIN_ID)}


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()
