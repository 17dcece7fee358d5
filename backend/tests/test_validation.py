"""
Unit tests for input validation and money handling.
"""

from decimal import Decimal

import pytest

from storefront.models import Product
from storefront.money import format_money, to_decimal
from storefront.services.products_service import PRODUCT_POLICY
from storefront.validation import (
    ValidationError,
    parse_json_field,
    parse_positive_int,
    validate_order_request,
    validate_payload,
)


SHIPPING = {"name": "A", "address": "B", "phone": "C", "email": "a@shop.test"}


class TestMoney:

    @pytest.mark.parametrize("raw,expected", [
        ("10000", Decimal("10000.00")),
        (19.99, Decimal("19.99")),
        (0.1, Decimal("0.10")),
        (3, Decimal("3.00")),
        ("2.005", Decimal("2.01")),
    ])
    def test_to_decimal(self, raw, expected):
        assert to_decimal(raw) == expected

    @pytest.mark.parametrize("raw", [True, None, "", "abc", "NaN", "Infinity", [1]])
    def test_to_decimal_rejects(self, raw):
        with pytest.raises(ValueError):
            to_decimal(raw)

    def test_format_money(self):
        assert format_money(Decimal("20000")) == "20000.00"
        assert format_money(None) is None


class TestPrimitives:

    @pytest.mark.parametrize("raw", [1, "7", " 12 "])
    def test_positive_int_accepts(self, raw):
        assert parse_positive_int(raw, "n") == int(str(raw).strip())

    @pytest.mark.parametrize("raw", [0, -1, "0", "1.5", 1.0, True, None, "x"])
    def test_positive_int_rejects(self, raw):
        with pytest.raises(ValidationError):
            parse_positive_int(raw, "n")

    def test_json_field(self):
        assert parse_json_field('[{"a": 1}]', "items") == [{"a": 1}]
        assert parse_json_field({"a": 1}, "shipping") == {"a": 1}
        with pytest.raises(ValidationError):
            parse_json_field("{nope", "items")


class TestOrderRequest:

    def test_valid_request_is_normalized(self):
        order = validate_order_request(
            user_id="3",
            items=[{"product_id": 1, "quantity": "2", "price": "10000"}],
            shipping={**SHIPPING, "name": "  Alice  "},
            payment_type=" cash ",
        )

        assert order.user_id == 3
        assert order.items[0].quantity == 2
        assert order.items[0].price == Decimal("10000.00")
        assert order.shipping.name == "Alice"
        assert order.payment_type == "cash"

    def test_collects_every_field_error(self):
        with pytest.raises(ValidationError) as exc:
            validate_order_request(
                user_id=None,
                items=[{"product_id": 1, "quantity": 0, "price": "1"}, {"product_id": 2, "quantity": 1, "price": "-1"}],
                shipping={"name": "A", "address": "", "phone": "C", "email": "bad"},
                payment_type="",
            )

        fields = [e["field"] for e in exc.value.field_errors]
        assert fields == ["userId", "items[0]", "items[1].price", "shipping.address", "shipping.email", "payment_type"]
        assert exc.value.to_dict()["error"] == "Invalid order request"

    def test_empty_items(self):
        with pytest.raises(ValidationError):
            validate_order_request(user_id=1, items=[], shipping=SHIPPING, payment_type="cash")


class TestModelPayload:

    def test_product_create_requires_name_and_price(self):
        with pytest.raises(ValidationError, match="Missing required fields: price"):
            validate_payload(model=Product, payload={"name": "X"}, policy=PRODUCT_POLICY, partial=False)

    def test_rejects_fields_outside_policy(self):
        with pytest.raises(ValidationError, match="Field not allowed: id"):
            validate_payload(model=Product, payload={"id": 5}, policy=PRODUCT_POLICY, partial=True)

    def test_coerces_form_strings(self):
        patch = validate_payload(
            model=Product,
            payload={"name": "Mug", "price": "8.5", "stock_quantity": "3", "category_id": ""},
            policy=PRODUCT_POLICY,
            partial=False,
        )
        assert patch == {"name": "Mug", "price": Decimal("8.50"), "stock_quantity": 3, "category_id": None}

    def test_rejects_decimal_stock(self):
        with pytest.raises(ValidationError):
            validate_payload(model=Product, payload={"stock_quantity": "2.5"}, policy=PRODUCT_POLICY, partial=True)
