"""
Order cancellation and back-office order management tests.

Verifies:
- Cancelling a pending order restores stock exactly once
- Only the owner or an admin may cancel; only pending orders can be cancelled
- Admin status changes notify the customer, and admin cancellation restocks too
- Deleting an order removes items and notifications and returns live stock
- Listing, filtering and reading orders respect ownership
"""

import io

from storefront.extensions import db
from storefront.models import Notification, Order, OrderItem, Product


SHIPPING = {
    "name": "Alice Doe",
    "address": "1 Main St",
    "phone": "020 5555 0101",
    "email": "alice@shop.test",
}


def place(client, headers, product, quantity=2, payment_type="bank_transfer"):
    resp = client.post(
        "/api/orders",
        json={
            "items": [{"product_id": product.id, "quantity": quantity, "price": "10000"}],
            "shipping": SHIPPING,
            "payment_type": payment_type,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["orderId"]


def stock_of(product_id):
    return db.session.get(Product, product_id).stock_quantity


def notification_types(order_id):
    rows = db.session.query(Notification).filter_by(order_id=order_id).order_by(Notification.id).all()
    return [(n.type, n.user_id) for n in rows]


class TestCustomerCancellation:

    def test_cancel_restores_stock(self, client, customer, customer_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product, quantity=2)
        assert stock_of(product.id) == 3

        resp = client.put(f"/api/orders/{order_id}/cancel", headers=customer_headers)

        assert resp.status_code == 200
        assert resp.get_json()["order"]["status"] == "cancelled"
        assert stock_of(product.id) == 5
        assert notification_types(order_id)[-2:] == [
            ("order_cancelled", None),
            ("order_cancelled_customer", customer.id),
        ]

    def test_second_cancel_is_rejected_and_does_not_restock_twice(self, client, customer_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product, quantity=2)

        first = client.put(f"/api/orders/{order_id}/cancel", headers=customer_headers)
        second = client.put(f"/api/orders/{order_id}/cancel", headers=customer_headers)

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.get_json()["error"] == "Order can only be cancelled if its status is 'pending'"
        assert stock_of(product.id) == 5

    def test_other_customer_cannot_cancel(self, client, customer_headers, other_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(f"/api/orders/{order_id}/cancel", headers=other_headers)

        assert resp.status_code == 403
        assert db.session.get(Order, order_id).status == "pending"
        assert stock_of(product.id) == 3

    def test_admin_can_cancel_any_pending_order(self, client, customer, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(f"/api/orders/{order_id}/cancel", headers=admin_headers)

        assert resp.status_code == 200
        assert stock_of(product.id) == 5
        assert ("order_cancelled_customer", customer.id) in notification_types(order_id)

    def test_missing_order_is_404(self, client, customer_headers):
        resp = client.put("/api/orders/424242/cancel", headers=customer_headers)
        assert resp.status_code == 404

    def test_only_pending_orders_cancel(self, client, customer_headers, staff_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)
        client.put(f"/api/orders/{order_id}/status", json={"status": "paid"}, headers=staff_headers)

        resp = client.put(f"/api/orders/{order_id}/cancel", headers=customer_headers)

        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"status": "paid"}
        assert stock_of(product.id) == 3


class TestStatusUpdates:

    def test_staff_moves_order_forward_and_customer_is_notified(
        self, client, customer, customer_headers, staff_headers, make_product
    ):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=staff_headers)

        assert resp.status_code == 200
        assert resp.get_json()["order"]["status"] == "shipped"
        assert notification_types(order_id)[-1] == ("order_status_update", customer.id)
        assert stock_of(product.id) == 3

    def test_rejects_unknown_status(self, client, customer_headers, staff_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "lost"}, headers=staff_headers)

        assert resp.status_code == 400

    def test_admin_cancellation_restocks(self, client, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product, quantity=4)
        client.put(f"/api/orders/{order_id}/status", json={"status": "paid"}, headers=admin_headers)

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=admin_headers)

        assert resp.status_code == 200
        assert stock_of(product.id) == 5

    def test_cancelled_is_terminal(self, client, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)
        client.put(f"/api/orders/{order_id}/cancel", headers=customer_headers)

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "pending"}, headers=admin_headers)

        assert resp.status_code == 400
        assert db.session.get(Order, order_id).status == "cancelled"
        assert stock_of(product.id) == 5

    def test_same_status_is_a_no_op(self, client, customer_headers, staff_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)
        before = len(notification_types(order_id))

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "pending"}, headers=staff_headers)

        assert resp.status_code == 200
        assert len(notification_types(order_id)) == before

    def test_customer_cannot_change_status(self, client, customer_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "completed"}, headers=customer_headers)

        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "UPDATE_ORDER_STATUS"


class TestOrderEdits:

    def test_staff_edits_shipping(self, client, customer_headers, staff_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(
            f"/api/orders/{order_id}",
            json={"shipping_address": "2 Side St", "shipping_phone": "020 0000 0000"},
            headers=staff_headers,
        )

        assert resp.status_code == 200
        order = db.session.get(Order, order_id)
        assert order.shipping_address == "2 Side St"
        assert order.shipping_phone == "020 0000 0000"

    def test_edit_rejects_unknown_field_and_empty_patch(self, client, customer_headers, staff_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        unknown = client.put(f"/api/orders/{order_id}", json={"total": "1.00"}, headers=staff_headers)
        empty = client.put(f"/api/orders/{order_id}", json={}, headers=staff_headers)

        assert unknown.status_code == 400
        assert empty.status_code == 400

    def test_status_in_edit_goes_through_transition_rules(self, client, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(f"/api/orders/{order_id}", json={"status": "cancelled"}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["order"]["status"] == "cancelled"
        assert stock_of(product.id) == 5

    def test_unknown_status_leaves_shipping_untouched(self, client, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.put(
            f"/api/orders/{order_id}",
            json={"shipping_address": "HACKED", "status": "bogus"},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        order = db.session.get(Order, order_id)
        assert order.shipping_address == "1 Main St"
        assert order.status == "pending"

    def test_refused_transition_rolls_back_field_changes(self, client, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)
        client.put(f"/api/orders/{order_id}", json={"status": "cancelled"}, headers=admin_headers)

        resp = client.put(
            f"/api/orders/{order_id}",
            json={"shipping_address": "2 Side St", "status": "pending"},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        order = db.session.get(Order, order_id)
        assert order.shipping_address == "1 Main St"
        assert order.status == "cancelled"
        assert stock_of(product.id) == 5


class TestDeletion:

    def test_admin_delete_removes_everything_and_restocks(self, client, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product, quantity=3)

        resp = client.delete(f"/api/orders/delete/{order_id}", headers=admin_headers)

        assert resp.status_code == 200
        assert db.session.get(Order, order_id) is None
        assert db.session.query(OrderItem).filter_by(order_id=order_id).count() == 0
        assert db.session.query(Notification).filter_by(order_id=order_id).count() == 0
        assert stock_of(product.id) == 5

    def test_deleting_cancelled_order_does_not_restock_again(self, client, customer_headers, admin_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product, quantity=3)
        client.put(f"/api/orders/{order_id}/cancel", headers=customer_headers)

        client.delete(f"/api/orders/delete/{order_id}", headers=admin_headers)

        assert stock_of(product.id) == 5

    def test_staff_cannot_delete(self, client, customer_headers, staff_headers, make_product):
        product = make_product(stock=5)
        order_id = place(client, customer_headers, product)

        resp = client.delete(f"/api/orders/delete/{order_id}", headers=staff_headers)

        assert resp.status_code == 403
        assert db.session.get(Order, order_id) is not None


class TestReads:

    def test_owner_reads_order_with_items(self, client, customer_headers, make_product):
        product = make_product(name="Widget", stock=5)
        order_id = place(client, customer_headers, product, quantity=2)

        resp = client.get(f"/api/orders/{order_id}", headers=customer_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["total"] == "20000.00"
        assert body["items"][0]["product_name"] == "Widget"
        assert body["items"][0]["quantity"] == 2

    def test_other_customer_cannot_read(self, client, customer_headers, other_headers, make_product):
        order_id = place(client, customer_headers, make_product(stock=5))
        resp = client.get(f"/api/orders/{order_id}", headers=other_headers)
        assert resp.status_code == 403

    def test_user_order_history(self, client, customer, customer_headers, other_headers, make_product):
        product = make_product(stock=10)
        place(client, customer_headers, product, quantity=1)
        place(client, customer_headers, product, quantity=2)

        mine = client.get(f"/api/orders/user/{customer.id}", headers=customer_headers)
        theirs = client.get(f"/api/orders/user/{customer.id}", headers=other_headers)

        assert mine.status_code == 200
        assert len(mine.get_json()) == 2
        assert all(o["item_count"] == 1 for o in mine.get_json())
        assert theirs.status_code == 403

    def test_back_office_list_filters(self, client, customer_headers, other_headers, staff_headers, make_product):
        product = make_product(stock=10)
        first = place(client, customer_headers, product, quantity=1, payment_type="cash")
        place(client, other_headers, product, quantity=1, payment_type="bank_transfer")
        client.put(f"/api/orders/{first}/status", json={"status": "paid"}, headers=staff_headers)

        everything = client.get("/api/orders", headers=staff_headers).get_json()
        paid = client.get("/api/orders?status=paid", headers=staff_headers).get_json()
        cash = client.get("/api/orders?payment_type=cash", headers=staff_headers).get_json()
        by_name = client.get("/api/orders?search=bob", headers=staff_headers).get_json()
        paged = client.get("/api/orders?limit=1&offset=1", headers=staff_headers).get_json()

        assert everything["total"] == 2
        assert [o["id"] for o in paid["orders"]] == [first]
        assert [o["id"] for o in cash["orders"]] == [first]
        assert by_name["total"] == 1 and by_name["orders"][0]["username"] == "bob"
        assert paged["total"] == 2 and len(paged["orders"]) == 1

    def test_back_office_list_rejects_bad_dates(self, client, staff_headers):
        resp = client.get("/api/orders?start_date=yesterday", headers=staff_headers)
        assert resp.status_code == 400

    def test_employee_can_list_but_customer_cannot(self, client, employee_headers, customer_headers):
        assert client.get("/api/orders", headers=employee_headers).status_code == 200
        assert client.get("/api/orders", headers=customer_headers).status_code == 403


class TestShippingBill:

    def test_upload_and_remove(self, client, customer, customer_headers, staff_headers, make_product, fake_storage):
        order_id = place(client, customer_headers, make_product(stock=5))

        resp = client.put(
            f"/api/orders/{order_id}/shipping-bill-upload",
            data={"shipping_bill": (io.BytesIO(b"%PDF-1.4 bill"), "bill.pdf", "application/pdf")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200
        url = resp.get_json()["shipping_bill_url"]
        assert url.startswith("https://cdn.shop.test/shipping_bills/")
        assert notification_types(order_id)[-1] == ("shipping_bill_uploaded", customer.id)

        removed = client.delete(f"/api/orders/{order_id}/shipping-bill", headers=staff_headers)

        assert removed.status_code == 200
        assert db.session.get(Order, order_id).shipping_bill_url is None
        assert fake_storage.deleted == [url]

    def test_file_is_required(self, client, customer_headers, staff_headers, make_product, fake_storage):
        order_id = place(client, customer_headers, make_product(stock=5))
        resp = client.put(f"/api/orders/{order_id}/shipping-bill-upload", headers=staff_headers)
        assert resp.status_code == 400

    def test_upload_failure_is_500_and_changes_nothing(
        self, client, customer_headers, staff_headers, make_product, fake_storage
    ):
        fake_storage.fail = True
        order_id = place(client, customer_headers, make_product(stock=5))

        resp = client.put(
            f"/api/orders/{order_id}/shipping-bill-upload",
            data={"shipping_bill": (io.BytesIO(b"%PDF-1.4 bill"), "bill.pdf", "application/pdf")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 500
        assert db.session.get(Order, order_id).shipping_bill_url is None
