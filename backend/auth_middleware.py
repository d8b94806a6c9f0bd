from functools import wraps

from flask import current_app, g, jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from pymongo.errors import PyMongoError

from extensions import mongo
from models import ADMIN_ROLE
from utils import to_object_id


def require_sign_in(fn):
    """Accepts the raw token in the Authorization header and sets g.user."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError) as exc:
            current_app.logger.warning("Rejected token: %s", exc)
            return jsonify({"success": False, "message": "Unauthorized or invalid token"}), 401
        g.user = {"_id": get_jwt_identity()}
        return fn(*args, **kwargs)

    return wrapper


def is_admin(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            user_id = to_object_id(g.user["_id"])
            user = mongo.db.users.find_one({"_id": user_id}) if user_id else None
        except PyMongoError as exc:
            current_app.logger.exception("Admin lookup failed")
            return jsonify({"success": False, "message": "Error in admin middleware", "error": str(exc)}), 401
        if not user or user.get("role") != ADMIN_ROLE:
            return jsonify({"success": False, "message": "UnAuthorized Access"}), 401
        return fn(*args, **kwargs)

    return wrapper
