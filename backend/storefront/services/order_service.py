# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order placement, cancellation and back-office order management.

Every multi-statement change runs inside concurrency.atomic(), so a failure at
any step (missing product, short stock, notification insert) leaves no order,
no items, no stock change and no notification behind.

Stock accounting: for every product,
    stock_quantity + sum(quantity of its items on non-cancelled orders)
stays equal to the stock an admin last set. Placement decrements, and every
way an order can leave the books (cancel by customer, cancel by admin,
delete) gives the stock back exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy import String, cast, func, or_, select, update

from ..extensions import db
from ..models import Customer, Notification, Order, OrderItem, Product, User, ORDER_STATUSES
from ..validation import (
    ModelValidationPolicy,
    OrderInput,
    ValidationError,
    is_valid_email,
    validate_payload,
)
from . import notification_service, permission_service, storage_service
from .concurrency import atomic, lock_for_update
from .storage_service import StorageError
from storefront.money import to_decimal
from storefront.time_utils import parse_day_range


class OrderError(Exception):
    """Raised for order operation errors."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class OrderNotFoundError(OrderError):
    status_code = 404


class ProductNotFoundError(OrderError):
    status_code = 404


class InsufficientStockError(OrderError):
    status_code = 400


class OrderStateError(OrderError):
    status_code = 400


class OrderAccessError(OrderError):
    status_code = 403


ORDER_EDIT_POLICY = ModelValidationPolicy(
    writable_fields={
        "shipping_name",
        "shipping_address",
        "shipping_phone",
        "shipping_email",
        "payment_type",
        "payment_proof",
    },
)


# -- Placement --

def _reserve_line(order: Order, line) -> None:
    """Insert one order item and take its quantity out of stock."""
    product = (
        db.session.query(Product.id, Product.name, Product.stock_quantity)
        .filter(Product.id == line.product_id)
        .first()
    )
    if product is None:
        raise ProductNotFoundError(
            f"Product with ID {line.product_id} not found",
            details={"product_id": line.product_id},
        )

    def _short(available: int) -> InsufficientStockError:
        return InsufficientStockError(
            f"Insufficient stock for {product.name}. Available: {available}, Requested: {line.quantity}",
            details={"product_id": product.id, "available": available, "requested": line.quantity},
        )

    if line.quantity > product.stock_quantity:
        raise _short(product.stock_quantity)

    db.session.add(OrderItem(
        order_id=order.id,
        product_id=product.id,
        quantity=line.quantity,
        price=line.price,
    ))

    # Conditional decrement: a concurrent order that took the stock first leaves zero rows matched
    result = db.session.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock_quantity >= line.quantity)
        .values(stock_quantity=Product.stock_quantity - line.quantity)
    )
    if result.rowcount != 1:
        available = db.session.query(Product.stock_quantity).filter(Product.id == product.id).scalar()
        raise _short(available or 0)


def _order_total(order_id: int):
    total = (
        db.session.query(func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0))
        .filter(OrderItem.order_id == order_id)
        .scalar()
    )
    return to_decimal(total)


def place_order(order_input: OrderInput, payment_proof_file=None) -> Order:
    """
    Create a pending order for order_input.user_id and reserve its stock.

    A payment proof that fails to upload is logged and dropped; the order
    still goes through without it. A proof already stored is deleted again
    when the order is rolled back.
    """
    payment_proof_url = None
    if payment_proof_file is not None and payment_proof_file.filename:
        try:
            payment_proof_url = storage_service.upload_document(payment_proof_file, "payment_proofs")
        except StorageError as e:
            current_app.logger.warning("Payment proof upload failed, placing order without it: %s", e)

    try:
        order = _insert_order(order_input, payment_proof_url)
    except Exception:
        if payment_proof_url:
            _discard_file(payment_proof_url)
        raise

    current_app.logger.info("Order %s placed by user %s, total %s", order.id, order.user_id, order.total)
    return order


def _insert_order(order_input: OrderInput, payment_proof_url: str | None) -> Order:
    shipping = order_input.shipping
    with atomic():
        order = Order(
            user_id=order_input.user_id,
            shipping_name=shipping.name,
            shipping_address=shipping.address,
            shipping_phone=shipping.phone,
            shipping_email=shipping.email,
            status="pending",
            payment_type=order_input.payment_type,
            payment_proof=payment_proof_url,
            total=0,
        )
        db.session.add(order)
        db.session.flush()

        for line in order_input.items:
            _reserve_line(order, line)

        db.session.flush()
        order.total = _order_total(order.id)

        notification_service.record(
            type=notification_service.NEW_ORDER,
            message=f"New order #{order.id} from {shipping.name}",
            order_id=order.id,
        )
        notification_service.record(
            type=notification_service.CUSTOMER_ORDER_PLACED,
            user_id=order.user_id,
            message=f"Your order #{order.id} has been placed.",
            order_id=order.id,
        )

    return order


# -- Cancellation and status --

def _restock(order: Order) -> None:
    for item in order.items:
        db.session.execute(
            update(Product)
            .where(Product.id == item.product_id)
            .values(stock_quantity=Product.stock_quantity + item.quantity)
        )


def _locked_order(order_id: int) -> Order:
    order = (
        lock_for_update(db.session.query(Order).filter(Order.id == order_id))
        .populate_existing()
        .first()
    )
    if not order:
        raise OrderNotFoundError("Order not found")
    return order


def cancel_order(order_id: int, actor: User) -> Order:
    """
    Cancel a pending order and put its items back in stock.

    The order row stays locked until commit, so of two concurrent cancels
    only the first sees 'pending'.
    """
    with atomic():
        order = _locked_order(order_id)

        if order.user_id != actor.id and not permission_service.user_has_permission(actor, "CANCEL_ANY_ORDER"):
            raise OrderAccessError("You are not allowed to cancel this order")

        if order.status != "pending":
            raise OrderStateError(
                "Order can only be cancelled if its status is 'pending'",
                details={"status": order.status},
            )

        order.status = "cancelled"
        _restock(order)

        who = "the customer" if order.user_id == actor.id else actor.username
        notification_service.record(
            type=notification_service.ORDER_CANCELLED,
            message=f"Order #{order.id} was cancelled by {who}",
            order_id=order.id,
        )
        notification_service.record(
            type=notification_service.ORDER_CANCELLED_CUSTOMER,
            user_id=order.user_id,
            message=f"Your order #{order.id} has been cancelled.",
            order_id=order.id,
        )

    current_app.logger.info("Order %s cancelled by user %s", order.id, actor.id)
    return order


def _apply_status(order: Order, new_status: str) -> bool:
    """Move a locked order to new_status. Returns False when nothing changed."""
    if order.status == new_status:
        return False
    if order.status == "cancelled":
        raise OrderStateError(
            "Cancelled orders cannot change status",
            details={"status": order.status, "requested": new_status},
        )

    order.status = new_status
    if new_status == "cancelled":
        _restock(order)

    notification_service.record(
        type=notification_service.ORDER_STATUS_UPDATE,
        user_id=order.user_id,
        message=f"Your order #{order.id} is now {new_status}.",
        order_id=order.id,
    )
    return True


def update_status(order_id: int, new_status, actor: User | None = None) -> Order:
    if not isinstance(new_status, str) or new_status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")

    with atomic():
        order = _locked_order(order_id)
        previous = order.status
        changed = _apply_status(order, new_status)

    if changed:
        current_app.logger.info(
            "Order %s status %s -> %s by user %s",
            order.id, previous, new_status, actor.id if actor else None,
        )
    return order


def update_order(order_id: int, payload: dict, actor: User | None = None) -> Order:
    """
    Partial admin edit of shipping/payment fields and, optionally, status.

    Field changes and the status transition commit together or not at all.
    """
    if not isinstance(payload, dict) or not payload:
        raise ValidationError("No fields to update")

    payload = dict(payload)
    has_status = "status" in payload
    new_status = payload.pop("status", None)
    if has_status and (not isinstance(new_status, str) or new_status not in ORDER_STATUSES):
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")

    patch = validate_payload(model=Order, payload=payload, policy=ORDER_EDIT_POLICY, partial=True)
    if "shipping_email" in patch and not is_valid_email(patch["shipping_email"]):
        raise ValidationError("shipping_email is invalid")

    with atomic():
        order = _locked_order(order_id)
        previous = order.status
        for key, value in patch.items():
            setattr(order, key, value)
        changed = _apply_status(order, new_status) if has_status else False

    if changed:
        current_app.logger.info(
            "Order %s status %s -> %s by user %s",
            order.id, previous, new_status, actor.id if actor else None,
        )
    return order


def delete_order(order_id: int) -> None:
    """Remove an order with its items and notifications; live orders give their stock back."""
    with atomic():
        order = _locked_order(order_id)
        if order.status != "cancelled":
            _restock(order)
        db.session.query(Notification).filter(Notification.order_id == order.id).delete(synchronize_session=False)
        db.session.delete(order)

    current_app.logger.info("Order %s deleted", order_id)


# -- Shipping bill --

def attach_shipping_bill(order_id: int, file) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise OrderNotFoundError("Order not found")

    # Upload before opening the transaction; a failed upload changes nothing
    url = storage_service.upload_document(file, "shipping_bills")
    previous_url = order.shipping_bill_url

    with atomic():
        order = _locked_order(order_id)
        order.shipping_bill_url = url
        notification_service.record(
            type=notification_service.SHIPPING_BILL_UPLOADED,
            user_id=order.user_id,
            message=f"The shipping bill for your order #{order.id} is available.",
            order_id=order.id,
        )

    if previous_url:
        _discard_file(previous_url)
    return order


def remove_shipping_bill(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise OrderNotFoundError("Order not found")
    if not order.shipping_bill_url:
        raise OrderNotFoundError("Order has no shipping bill")

    url = order.shipping_bill_url
    order.shipping_bill_url = None
    db.session.commit()

    _discard_file(url)
    return order


def _discard_file(url: str) -> None:
    try:
        storage_service.delete_file(url)
    except StorageError as e:
        current_app.logger.warning("Could not delete stored file %s: %s", url, e)


# -- Reads --

def get_order(order_id: int, actor: User) -> dict:
    order = db.session.get(Order, order_id)
    if not order:
        raise OrderNotFoundError("Order not found")
    if order.user_id != actor.id and not permission_service.user_has_permission(actor, "VIEW_ALL_ORDERS"):
        raise OrderAccessError("You are not allowed to view this order")

    return order.to_dict(include_items=True)


def _item_count_column():
    return (
        select(func.count(OrderItem.id))
        .where(OrderItem.order_id == Order.id)
        .correlate(Order)
        .scalar_subquery()
        .label("item_count")
    )


def list_user_orders(user_id: int, actor: User) -> list[dict]:
    if user_id != actor.id and not permission_service.user_has_permission(actor, "VIEW_ALL_ORDERS"):
        raise OrderAccessError("You can only view your own orders")

    rows = (
        db.session.query(Order, _item_count_column())
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    result = []
    for order, item_count in rows:
        data = order.to_dict()
        data["item_count"] = item_count
        result.append(data)
    return result


@dataclass(frozen=True)
class OrderFilters:
    status: str | None = None
    payment_type: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    search: str | None = None

    @classmethod
    def from_args(cls, args) -> "OrderFilters":
        status = (args.get("status") or "").strip() or None
        if status and status != "all" and status not in ORDER_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")
        try:
            start, end = parse_day_range(args.get("start_date"), args.get("end_date"))
        except ValueError:
            raise ValidationError("start_date and end_date must be YYYY-MM-DD")
        payment_type = (args.get("payment_type") or "").strip() or None
        return cls(
            status=None if status == "all" else status,
            payment_type=None if payment_type == "all" else payment_type,
            start=start,
            end=end,
            search=(args.get("search") or "").strip() or None,
        )

    def clauses(self) -> list:
        clauses = []
        if self.status:
            clauses.append(Order.status == self.status)
        if self.payment_type:
            clauses.append(Order.payment_type == self.payment_type)
        if self.start:
            clauses.append(Order.created_at >= self.start)
        if self.end:
            clauses.append(Order.created_at < self.end)
        if self.search:
            pattern = f"%{self.search}%"
            clauses.append(or_(
                cast(Order.id, String).like(pattern),
                User.username.ilike(pattern),
            ))
        return clauses


def list_orders(filters: OrderFilters, *, limit: int = 20, offset: int = 0) -> tuple[list[dict], int]:
    """Back-office order list. Returns (page of orders, total matching)."""
    query = (
        db.session.query(Order, User.username, Customer.name, _item_count_column())
        .join(User, Order.user_id == User.id)
        .outerjoin(Customer, Customer.user_id == User.id)
        .filter(*filters.clauses())
    )
    total = query.count()
    rows = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )

    orders = []
    for order, username, customer_name, item_count in rows:
        data = order.to_dict()
        data["username"] = username
        data["customer_name"] = customer_name
        data["item_count"] = item_count
        orders.append(data)
    return orders, total
