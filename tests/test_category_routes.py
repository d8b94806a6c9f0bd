"""Tests for /api/v1/category."""

from unittest.mock import Mock

from bson import ObjectId
from pymongo.errors import PyMongoError


class TestCreateCategory:
    def test_missing_name(self, client, admin_headers, mock_db):
        response = client.post("/api/v1/category/create-category", json={}, headers=admin_headers)

        assert response.status_code == 401
        assert response.get_json() == {"message": "Name is required"}

    def test_empty_name(self, client, admin_headers, mock_db):
        response = client.post("/api/v1/category/create-category", json={"name": ""}, headers=admin_headers)

        assert response.status_code == 401

    def test_non_string_name(self, client, admin_headers, mock_db):
        response = client.post(
            "/api/v1/category/create-category", json={"name": {"$ne": None}}, headers=admin_headers
        )

        assert response.status_code == 401
        mock_db.categories.find_one.assert_not_called()

    def test_existing_category(self, client, admin_headers, mock_db):
        mock_db.categories.find_one.return_value = {"_id": ObjectId(), "name": "Books"}

        response = client.post("/api/v1/category/create-category", json={"name": "Books"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json() == {"success": True, "message": "Category Already Exists"}
        mock_db.categories.find_one.assert_called_once_with({"name": "Books"})
        mock_db.categories.insert_one.assert_not_called()

    def test_creates_category_with_slug(self, client, admin_headers, mock_db):
        new_id = ObjectId()
        mock_db.categories.find_one.return_value = None
        mock_db.categories.insert_one.return_value = Mock(inserted_id=new_id)

        response = client.post(
            "/api/v1/category/create-category", json={"name": "Home Decor"}, headers=admin_headers
        )

        assert response.status_code == 201
        body = response.get_json()
        assert body["message"] == "New category created"
        assert body["category"]["_id"] == str(new_id)
        assert body["category"]["slug"] == "home-decor"
        stored = mock_db.categories.insert_one.call_args[0][0]
        assert stored["name"] == "Home Decor"

    def test_database_error(self, client, admin_headers, mock_db):
        mock_db.categories.find_one.side_effect = PyMongoError("db down")

        response = client.post("/api/v1/category/create-category", json={"name": "Toys"}, headers=admin_headers)

        assert response.status_code == 500
        body = response.get_json()
        assert body["message"] == "Error in Category"
        assert body["error"] == "db down"

    def test_requires_sign_in(self, client, mock_db):
        response = client.post("/api/v1/category/create-category", json={"name": "Toys"})

        assert response.status_code == 401
        mock_db.categories.insert_one.assert_not_called()


class TestUpdateCategory:
    def test_updates_name_and_slug(self, client, admin_headers, mock_db):
        category_id = ObjectId()
        mock_db.categories.find_one_and_update.return_value = {
            "_id": category_id, "name": "NewName", "slug": "newname",
        }

        response = client.put(
            f"/api/v1/category/update-category/{category_id}", json={"name": "NewName"}, headers=admin_headers
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["message"] == "Category Updated Successfully"
        assert body["category"]["slug"] == "newname"
        query, update = mock_db.categories.find_one_and_update.call_args[0]
        assert query == {"_id": category_id}
        assert update["$set"]["name"] == "NewName"
        assert update["$set"]["slug"] == "newname"

    def test_unknown_id(self, client, admin_headers, mock_db):
        mock_db.categories.find_one_and_update.return_value = None

        response = client.put(
            f"/api/v1/category/update-category/{ObjectId()}", json={"name": "X"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.get_json() == {"success": False, "message": "Category not found"}

    def test_malformed_id_is_not_found(self, client, admin_headers, mock_db):
        response = client.put("/api/v1/category/update-category/bad", json={"name": "X"}, headers=admin_headers)

        assert response.status_code == 404
        mock_db.categories.find_one_and_update.assert_not_called()

    def test_database_error(self, client, admin_headers, mock_db):
        mock_db.categories.find_one_and_update.side_effect = PyMongoError("fail")

        response = client.put(
            f"/api/v1/category/update-category/{ObjectId()}", json={"name": "X"}, headers=admin_headers
        )

        assert response.status_code == 500
        assert response.get_json()["message"] == "Error while updating category"


class TestReadCategories:
    def test_lists_all(self, client, mock_db):
        ids = [ObjectId(), ObjectId()]
        mock_db.categories.find.return_value = [{"_id": ids[0]}, {"_id": ids[1]}]

        response = client.get("/api/v1/category/get-category")

        assert response.status_code == 200
        assert response.get_json() == {
            "success": True,
            "message": "All Categories List",
            "category": [{"_id": str(ids[0])}, {"_id": str(ids[1])}],
        }
        mock_db.categories.find.assert_called_once_with({})

    def test_list_database_error(self, client, mock_db):
        mock_db.categories.find.side_effect = PyMongoError("fail")

        response = client.get("/api/v1/category/get-category")

        assert response.status_code == 500
        assert response.get_json()["message"] == "Error while getting all categories"

    def test_single_by_slug(self, client, mock_db):
        mock_db.categories.find_one.return_value = {"_id": ObjectId(), "slug": "books"}

        response = client.get("/api/v1/category/single-category/books")

        assert response.status_code == 200
        assert response.get_json()["message"] == "Get Single Category Successfully"
        mock_db.categories.find_one.assert_called_once_with({"slug": "books"})

    def test_single_unknown_slug(self, client, mock_db):
        mock_db.categories.find_one.return_value = None

        response = client.get("/api/v1/category/single-category/none")

        assert response.status_code == 404

    def test_single_database_error(self, client, mock_db):
        mock_db.categories.find_one.side_effect = PyMongoError("fail")

        response = client.get("/api/v1/category/single-category/x")

        assert response.status_code == 500
        assert response.get_json()["message"] == "Error While getting Single Category"


class TestDeleteCategory:
    def test_deletes(self, client, admin_headers, mock_db):
        category_id = ObjectId()
        mock_db.categories.find_one_and_delete.return_value = {"_id": category_id}

        response = client.delete(f"/api/v1/category/delete-category/{category_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json() == {"success": True, "message": "Category Deleted Successfully"}
        mock_db.categories.find_one_and_delete.assert_called_once_with({"_id": category_id})

    def test_unknown_id(self, client, admin_headers, mock_db):
        mock_db.categories.find_one_and_delete.return_value = None

        response = client.delete(f"/api/v1/category/delete-category/{ObjectId()}", headers=admin_headers)

        assert response.status_code == 404

    def test_database_error(self, client, admin_headers, mock_db):
        mock_db.categories.find_one_and_delete.side_effect = PyMongoError("fail")

        response = client.delete(f"/api/v1/category/delete-category/{ObjectId()}", headers=admin_headers)

        assert response.status_code == 500
        assert response.get_json()["message"] == "Error while deleting category"
