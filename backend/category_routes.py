from flask import Blueprint, current_app, jsonify, request
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from auth_middleware import is_admin, require_sign_in
from extensions import mongo
from models import ValidationError, build_category, touch
from utils import error_body, slugify, to_object_id

category_bp = Blueprint("category", __name__, url_prefix="/api/v1/category")


@category_bp.route("/create-category", methods=["POST"])
@require_sign_in
@is_admin
def create_category():
    name = (request.get_json(silent=True) or {}).get("name")
    if not name or not isinstance(name, str):
        return jsonify({"message": "Name is required"}), 401
    try:
        if mongo.db.categories.find_one({"name": name}):
            return jsonify({"success": True, "message": "Category Already Exists"}), 200
        category = build_category(name, slugify(name))
        result = mongo.db.categories.insert_one(category)
        category["_id"] = result.inserted_id
    except (PyMongoError, ValidationError) as exc:
        current_app.logger.exception("Creating category failed")
        return jsonify(error_body("Error in Category", exc)), 500
    return jsonify({"success": True, "message": "New category created", "category": category}), 201


@category_bp.route("/update-category/<category_id>", methods=["PUT"])
@require_sign_in
@is_admin
def update_category(category_id):
    name = (request.get_json(silent=True) or {}).get("name")
    if not name or not isinstance(name, str):
        return jsonify({"message": "Name is required"}), 401
    oid = to_object_id(category_id)
    try:
        category = mongo.db.categories.find_one_and_update(
            {"_id": oid},
            {"$set": touch({"name": name, "slug": slugify(name)})},
            return_document=ReturnDocument.AFTER,
        ) if oid else None
    except PyMongoError as exc:
        current_app.logger.exception("Updating category failed")
        return jsonify(error_body("Error while updating category", exc)), 500
    if not category:
        return jsonify({"success": False, "message": "Category not found"}), 404
    return jsonify({"success": True, "message": "Category Updated Successfully", "category": category}), 200


@category_bp.route("/get-category", methods=["GET"])
def get_categories():
    try:
        categories = list(mongo.db.categories.find({}))
    except PyMongoError as exc:
        current_app.logger.exception("Listing categories failed")
        return jsonify(error_body("Error while getting all categories", exc)), 500
    return jsonify({"success": True, "message": "All Categories List", "category": categories}), 200


@category_bp.route("/single-category/<slug>", methods=["GET"])
def get_category(slug):
    try:
        category = mongo.db.categories.find_one({"slug": slug})
    except PyMongoError as exc:
        current_app.logger.exception("Fetching category failed")
        return jsonify(error_body("Error While getting Single Category", exc)), 500
    if not category:
        return jsonify({"success": False, "message": "Category not found"}), 404
    return jsonify({"success": True, "message": "Get Single Category Successfully", "category": category}), 200


@category_bp.route("/delete-category/<category_id>", methods=["DELETE"])
@require_sign_in
@is_admin
def delete_category(category_id):
    oid = to_object_id(category_id)
    try:
        deleted = mongo.db.categories.find_one_and_delete({"_id": oid}) if oid else None
    except PyMongoError as exc:
        current_app.logger.exception("Deleting category failed")
        return jsonify(error_body("Error while deleting category", exc)), 500
    if not deleted:
        return jsonify({"success": False, "message": "Category not found"}), 404
    return jsonify({"success": True, "message": "Category Deleted Successfully"}), 200
