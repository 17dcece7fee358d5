"""
Category and image upload tests.

Verifies:
- Categories list publicly and nest one level deep
- Staff manage categories; only admins delete them
- Deleting a category leaves its products and subcategories uncategorized
- Image uploads accept only images in the allowed folders
"""

import io

from storefront.extensions import db
from storefront.models import Category, Product


class TestCategories:

    def test_public_list_sorted_by_name(self, client, db_session):
        db.session.add_all([Category(name="Shoes"), Category(name="Bags")])
        db.session.commit()

        resp = client.get("/api/categories")

        assert [c["name"] for c in resp.get_json()["categories"]] == ["Bags", "Shoes"]

    def test_staff_create_subcategory(self, client, staff_headers, category):
        resp = client.post("/api/categories", json={"name": "Shirts", "parent_id": category.id}, headers=staff_headers)

        assert resp.status_code == 201
        assert resp.get_json()["parent_id"] == category.id

    def test_nesting_is_one_level(self, client, staff_headers, category):
        child = client.post(
            "/api/categories", json={"name": "Shirts", "parent_id": category.id}, headers=staff_headers
        ).get_json()

        resp = client.post("/api/categories", json={"name": "Polos", "parent_id": child["id"]}, headers=staff_headers)

        assert resp.status_code == 400

    def test_parent_must_exist(self, client, staff_headers):
        resp = client.post("/api/categories", json={"name": "Orphan", "parent_id": 999}, headers=staff_headers)
        assert resp.status_code == 400

    def test_name_required(self, client, staff_headers):
        assert client.post("/api/categories", json={}, headers=staff_headers).status_code == 400

    def test_cannot_parent_itself(self, client, staff_headers, category):
        resp = client.put(f"/api/categories/{category.id}", json={"parent_id": category.id}, headers=staff_headers)
        assert resp.status_code == 400

    def test_rename(self, client, staff_headers, category):
        resp = client.put(f"/api/categories/{category.id}", json={"name": "Apparel"}, headers=staff_headers)
        assert resp.status_code == 200
        assert db.session.get(Category, category.id).name == "Apparel"

    def test_update_missing(self, client, staff_headers):
        assert client.put("/api/categories/999", json={"name": "X"}, headers=staff_headers).status_code == 404

    def test_customer_cannot_manage(self, client, customer_headers):
        assert client.post("/api/categories", json={"name": "X"}, headers=customer_headers).status_code == 403

    def test_only_admin_deletes(self, client, staff_headers, admin_headers, category, make_product):
        product = make_product(category=category)
        child = Category(name="Shirts", parent_id=category.id)
        db.session.add(child)
        db.session.commit()
        child_id = child.id

        assert client.delete(f"/api/categories/{category.id}", headers=staff_headers).status_code == 403

        resp = client.delete(f"/api/categories/{category.id}", headers=admin_headers)

        assert resp.status_code == 200
        assert db.session.get(Category, category.id) is None
        assert db.session.get(Product, product.id).category_id is None
        assert db.session.get(Category, child_id).parent_id is None

    def test_delete_missing(self, client, admin_headers):
        assert client.delete("/api/categories/999", headers=admin_headers).status_code == 404


class TestImageUpload:

    def test_upload_image(self, client, staff_headers, fake_storage):
        resp = client.post(
            "/api/upload",
            data={"folder": "products", "image": (io.BytesIO(b"\x89PNG\r\n\x1a\n"), "a.png", "image/png")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 201
        assert resp.get_json()["url"] == "https://cdn.shop.test/products/1.png"

    def test_rejects_non_image(self, client, staff_headers, fake_storage):
        resp = client.post(
            "/api/upload",
            data={"image": (io.BytesIO(b"%PDF-1.4"), "a.pdf", "application/pdf")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert fake_storage.uploads == []

    def test_rejects_unknown_folder(self, client, staff_headers, fake_storage):
        resp = client.post(
            "/api/upload",
            data={"folder": "secrets", "image": (io.BytesIO(b"x"), "a.png", "image/png")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_missing_file(self, client, staff_headers, fake_storage):
        resp = client.post("/api/upload", data={}, headers=staff_headers, content_type="multipart/form-data")
        assert resp.status_code == 400

    def test_storage_failure(self, client, staff_headers, fake_storage):
        fake_storage.fail = True
        resp = client.post(
            "/api/upload",
            data={"image": (io.BytesIO(b"x"), "a.png", "image/png")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 500

    def test_customer_cannot_upload(self, client, customer_headers, fake_storage):
        resp = client.post("/api/upload", data={}, headers=customer_headers, content_type="multipart/form-data")
        assert resp.status_code == 403
