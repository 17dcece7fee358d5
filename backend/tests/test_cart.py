"""
Shopping cart tests.

Verifies:
- Adding merges with an existing line and respects stock
- Quantities update, lines remove, carts clear
- A user only ever sees and edits their own cart
"""

from storefront.extensions import db
from storefront.models import CartItem


def add(client, headers, product, quantity=1):
    return client.post("/api/cart/add", json={"productId": product.id, "quantity": quantity}, headers=headers)


class TestAdd:

    def test_add_creates_line(self, client, customer, customer_headers, make_product):
        product = make_product(price="250.00", stock=5)

        resp = add(client, customer_headers, product, 2)

        assert resp.status_code == 201
        item = resp.get_json()["item"]
        assert item["quantity"] == 2
        assert item["line_total"] == "500.00"

    def test_add_again_merges(self, client, customer, customer_headers, make_product):
        product = make_product(stock=5)
        add(client, customer_headers, product, 2)

        resp = add(client, customer_headers, product, 1)

        assert resp.status_code == 200
        assert resp.get_json()["item"]["quantity"] == 3
        assert db.session.query(CartItem).filter_by(user_id=customer.id).count() == 1

    def test_merged_quantity_cannot_exceed_stock(self, client, customer_headers, make_product):
        product = make_product(stock=3)
        add(client, customer_headers, product, 2)

        resp = add(client, customer_headers, product, 2)

        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"product_id": product.id, "available": 3, "requested": 4}

    def test_unknown_product(self, client, customer_headers):
        resp = client.post("/api/cart/add", json={"productId": 9999, "quantity": 1}, headers=customer_headers)
        assert resp.status_code == 404

    def test_bad_quantity(self, client, customer_headers, make_product):
        product = make_product()
        resp = client.post("/api/cart/add", json={"productId": product.id, "quantity": 0}, headers=customer_headers)
        assert resp.status_code == 400

    def test_staff_have_no_cart(self, client, staff_headers, make_product):
        product = make_product()
        assert add(client, staff_headers, product).status_code == 403


class TestReadAndEdit:

    def test_get_cart_and_count(self, client, customer, customer_headers, make_product):
        add(client, customer_headers, make_product(name="A"), 2)
        add(client, customer_headers, make_product(name="B"), 3)

        cart = client.get(f"/api/cart/{customer.id}", headers=customer_headers)
        count = client.get(f"/api/cart/count/{customer.id}", headers=customer_headers)

        assert [line["name"] for line in cart.get_json()] == ["A", "B"]
        assert count.get_json() == {"count": 5}

    def test_cannot_read_someone_elses_cart(self, client, customer, other_headers):
        assert client.get(f"/api/cart/{customer.id}", headers=other_headers).status_code == 403
        assert client.get(f"/api/cart/count/{customer.id}", headers=other_headers).status_code == 403

    def test_update_quantity(self, client, customer_headers, make_product):
        item_id = add(client, customer_headers, make_product(stock=5)).get_json()["item"]["id"]

        resp = client.put(f"/api/cart/update/{item_id}", json={"quantity": 4}, headers=customer_headers)

        assert resp.status_code == 200
        assert db.session.get(CartItem, item_id).quantity == 4

    def test_update_beyond_stock(self, client, customer_headers, make_product):
        item_id = add(client, customer_headers, make_product(stock=2)).get_json()["item"]["id"]
        resp = client.put(f"/api/cart/update/{item_id}", json={"quantity": 3}, headers=customer_headers)
        assert resp.status_code == 400

    def test_update_requires_quantity(self, client, customer_headers, make_product):
        item_id = add(client, customer_headers, make_product()).get_json()["item"]["id"]
        resp = client.put(f"/api/cart/update/{item_id}", json={}, headers=customer_headers)
        assert resp.status_code == 400

    def test_cannot_touch_other_users_lines(self, client, customer_headers, other_headers, make_product):
        item_id = add(client, customer_headers, make_product()).get_json()["item"]["id"]

        update = client.put(f"/api/cart/update/{item_id}", json={"quantity": 2}, headers=other_headers)
        remove = client.delete(f"/api/cart/remove/{item_id}", headers=other_headers)

        assert update.status_code == 403
        assert remove.status_code == 403
        assert db.session.get(CartItem, item_id) is not None

    def test_remove_line(self, client, customer_headers, make_product):
        item_id = add(client, customer_headers, make_product()).get_json()["item"]["id"]

        resp = client.delete(f"/api/cart/remove/{item_id}", headers=customer_headers)

        assert resp.status_code == 200
        assert db.session.get(CartItem, item_id) is None
        assert client.delete(f"/api/cart/remove/{item_id}", headers=customer_headers).status_code == 404

    def test_clear_only_own_cart(self, client, customer, other_customer, customer_headers, other_headers, make_product):
        product = make_product(stock=10)
        add(client, customer_headers, product, 1)
        add(client, customer_headers, make_product(name="B"), 1)
        add(client, other_headers, product, 1)

        resp = client.delete("/api/cart/clear", headers=customer_headers)

        assert resp.get_json()["removed"] == 2
        assert db.session.query(CartItem).filter_by(user_id=customer.id).count() == 0
        assert db.session.query(CartItem).filter_by(user_id=other_customer.id).count() == 1
