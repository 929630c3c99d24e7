"""
Order lifecycle operations.

Creation, customer and guest cancellation, admin status progression and the
auto-cancel sweep. Every status change is a conditional update on the
expected current status, written in the same transaction as its tracking
entry, so concurrent transitions on one order cannot both succeed.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from authentication.models import User
from authentication.permissions import authorize
from core.exceptions import (
    ForbiddenError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    StorefrontError,
    ValidationError,
)
from products.models import Product

from .models import Order, OrderItem, TrackingUpdate

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_ATTEMPTS = 5

ORDER_PLACED_MESSAGE = "Order placed successfully"
CUSTOMER_CANCEL_MESSAGE = "Order cancelled by customer"
AUTO_CANCEL_MESSAGE = "Order auto-cancelled due to no confirmation within {hours} hours"
STATUS_UPDATE_MESSAGE = "Order status updated to {status}"

ADDRESS_FIELDS = ("street", "city", "state", "pincode")


@dataclass
class SweepResult:
    order_numbers: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def cancelled_count(self) -> int:
        return len(self.order_numbers)


@dataclass
class BulkUpdateResult:
    modified_count: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)


def generate_order_number(now=None) -> str:
    """
    Build ``ORD`` + last 8 digits of the epoch-millisecond clock + 3 random digits.
    """
    millis = int((now or timezone.now()).timestamp() * 1000)
    return f"{ORDER_NUMBER_PREFIX}{str(millis)[-8:]}{secrets.randbelow(1000):03d}"


def auto_cancel_window() -> timedelta:
    return timedelta(hours=settings.ORDER_AUTO_CANCEL_HOURS)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def _clean_address(delivery_address) -> Dict[str, str]:
    if not isinstance(delivery_address, dict):
        raise ValidationError("Delivery address is required")
    address = {key: str(delivery_address.get(key) or "").strip() for key in ADDRESS_FIELDS}
    if not address["street"] or not address["city"]:
        raise ValidationError("Delivery address is required")
    missing = [key for key in ADDRESS_FIELDS if not address[key]]
    if missing:
        raise ValidationError(f"Delivery address is missing: {', '.join(missing)}")
    return address


def _clean_guest_info(guest_info) -> Dict[str, str]:
    guest_info = guest_info or {}
    guest = {
        "name": str(guest_info.get("name") or "").strip(),
        "phone": str(guest_info.get("phone") or "").strip(),
        "email": str(guest_info.get("email") or "").strip(),
    }
    if not guest["name"] or not guest["phone"]:
        raise ValidationError("Guest name and phone are required for guest orders")
    return guest


def _build_items(items) -> List[OrderItem]:
    """
    Resolve requested lines against the catalogue and snapshot name, price
    and image from the current product record.
    """
    if not items:
        raise ValidationError("Order must contain at least one item")

    requested = []
    seen = set()
    for item in items:
        product_id = item.get("product")
        quantity = item.get("quantity")
        if not product_id:
            raise ValidationError("Each item must reference a product")
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Each item must have a quantity of at least 1")
        if product_id in seen:
            raise ValidationError(f"Duplicate product in order: {product_id}")
        seen.add(product_id)
        requested.append((product_id, quantity))

    products = Product.objects.in_bulk([product_id for product_id, _ in requested])
    lines = []
    for product_id, quantity in requested:
        product = products.get(product_id)
        if product is None:
            raise ValidationError(f"Product {product_id} not found")
        if not product.is_active:
            raise ValidationError(f"Product {product.name} is not available")
        lines.append(OrderItem(
            product=product,
            name=product.name,
            price=product.price,
            quantity=quantity,
            image=product.cover_image,
        ))
    return lines


def create_order(
    *,
    user: Optional[User],
    items,
    total_amount,
    delivery_address,
    delivery_charge=None,
    payment_method=None,
    notes: str = "",
    guest_info=None,
) -> Order:
    """
    Place a new order in ``pending`` with its seed tracking entry.

    Authenticated callers own the order and any ``guest_info`` is ignored;
    anonymous callers must supply guest ``name`` and ``phone``. Payment
    status always starts as ``pending``.
    """
    lines = _build_items(items)
    address = _clean_address(delivery_address)

    if total_amount is None:
        raise ValidationError("Total amount is required")
    total_amount = Decimal(total_amount)
    delivery_charge = Decimal(delivery_charge or 0)
    if total_amount < 0 or delivery_charge < 0:
        raise ValidationError("Amounts cannot be negative")

    payment_method = payment_method or Order.PaymentMethod.COD
    if payment_method not in Order.PaymentMethod.values:
        raise ValidationError(f"Invalid payment method: {payment_method}")

    is_member = user is not None and user.is_authenticated
    guest = None if is_member else _clean_guest_info(guest_info)

    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        order_number = generate_order_number()
        order = Order(
            order_number=order_number,
            user=user if is_member else None,
            guest_name=guest["name"] if guest else "",
            guest_phone=guest["phone"] if guest else "",
            guest_email=guest["email"] if guest else "",
            total_amount=total_amount,
            delivery_charge=delivery_charge,
            delivery_street=address["street"],
            delivery_city=address["city"],
            delivery_state=address["state"],
            delivery_pincode=address["pincode"],
            payment_method=payment_method,
            payment_status=Order.PaymentStatus.PENDING,
            status=Order.OrderStatus.PENDING,
            notes=notes or "",
        )
        try:
            with transaction.atomic():
                order.save(force_insert=True)
                for line in lines:
                    line.order = order
                OrderItem.objects.bulk_create(lines)
                TrackingUpdate.objects.create(
                    order=order,
                    status=Order.OrderStatus.PENDING,
                    message=ORDER_PLACED_MESSAGE,
                )
        except IntegrityError:
            if Order.objects.filter(order_number=order_number).exists():
                logger.warning("Order number collision on %s (attempt %d)", order_number, attempt)
                continue
            logger.exception("Failed to store order")
            raise InternalError("Failed to create order")

        logger.info(
            "Order %s placed by %s",
            order.order_number,
            f"user {user.pk}" if is_member else "guest",
        )
        return order

    raise InternalError("Could not allocate a unique order number")


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def _apply_transition(order_pk, expected_status: str, new_status: str, message: str) -> bool:
    """
    Move one order from ``expected_status`` to ``new_status`` and append the
    tracking entry. Returns False when the order was no longer in
    ``expected_status``.
    """
    with transaction.atomic():
        updated = Order.objects.filter(pk=order_pk, status=expected_status).update(
            status=new_status,
            updated_at=timezone.now(),
        )
        if not updated:
            return False
        TrackingUpdate.objects.create(order_id=order_pk, status=new_status, message=message)
    return True


def get_order_by_number(order_number: str) -> Order:
    try:
        return Order.objects.get(order_number=order_number)
    except Order.DoesNotExist:
        raise NotFoundError("Order not found")


def _cancel(order: Order, message: str, hint: str = "") -> Order:
    if not order.can_be_cancelled() or not _apply_transition(
        order.pk, Order.OrderStatus.PENDING, Order.OrderStatus.CANCELLED, message
    ):
        order.refresh_from_db(fields=["status"])
        raise InvalidStateError(f"Cannot cancel order with status: {order.status}{hint}")
    order.refresh_from_db()
    logger.info("Order %s cancelled", order.order_number)
    return order


def cancel_order(order_number: str, user: User) -> Order:
    """
    Cancel a pending order on behalf of an authenticated customer.

    Orders owned by another user are refused unless the caller is an admin.
    Guest orders carry no owner and pass the ownership check.
    """
    order = get_order_by_number(order_number)
    if (
        order.user_id is not None
        and order.user_id != user.pk
        and not authorize(user, User.Role.ADMIN)
    ):
        raise ForbiddenError("Unauthorized to cancel this order")
    return _cancel(order, CUSTOMER_CANCEL_MESSAGE)


def cancel_guest_order(order_number: str) -> Order:
    """
    Cancel a pending order knowing only its order number.

    Security caveat: possession of the order number is the only credential.
    Order numbers are partly time-derived, so anyone who obtains or guesses
    one can cancel the order while it is pending.
    """
    order = get_order_by_number(order_number)
    if not order.is_guest:
        logger.warning("Guest cancellation requested for member order %s", order_number)
    return _cancel(order, CUSTOMER_CANCEL_MESSAGE, ". Only pending orders can be cancelled.")


def auto_cancel_stale_orders(now=None, window: Optional[timedelta] = None) -> SweepResult:
    """
    Cancel every pending order created more than ``window`` before ``now``.

    Orders are processed one by one; a failure on one order is logged and
    collected in ``SweepResult.errors`` and the sweep carries on. An order
    that left ``pending`` after being selected is skipped.
    """
    now = now or timezone.now()
    window = window or auto_cancel_window()
    cutoff = now - window
    hours = int(window.total_seconds() // 3600)
    message = AUTO_CANCEL_MESSAGE.format(hours=hours)

    stale = list(
        Order.objects.filter(status=Order.OrderStatus.PENDING, created_at__lt=cutoff)
        .order_by("created_at")
        .values_list("pk", "order_number")
    )

    result = SweepResult()
    for order_pk, order_number in stale:
        try:
            if _apply_transition(
                order_pk, Order.OrderStatus.PENDING, Order.OrderStatus.CANCELLED, message
            ):
                result.order_numbers.append(order_number)
        except Exception as exc:
            logger.exception("Auto-cancel failed for order %s", order_number)
            result.errors.append({"orderNumber": order_number, "error": str(exc)})

    logger.info(
        "Auto-cancel sweep: %d of %d stale orders cancelled, %d errors",
        result.cancelled_count, len(stale), len(result.errors),
    )
    return result


def update_order(order_id, actor: User, *, status: Optional[str] = None, notes: Optional[str] = None) -> Order:
    """
    Administrative update: status progression and notes.

    Status changes must follow ``Order.ALLOWED_TRANSITIONS`` and append a
    tracking entry.
    """
    if not authorize(actor, User.Role.ADMIN):
        raise ForbiddenError("Forbidden - Admin access required")
    if status is not None and status not in Order.OrderStatus.values:
        raise ValidationError("Invalid status")

    try:
        order = Order.objects.get(pk=order_id)
    except (Order.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Order not found")

    if status is not None:
        current = order.status
        if not order.can_transition_to(status) or not _apply_transition(
            order.pk, current, status, STATUS_UPDATE_MESSAGE.format(status=status)
        ):
            order.refresh_from_db(fields=["status"])
            raise InvalidStateError(
                f"Cannot transition order from {order.status} to {status}"
            )
        logger.info("Order %s moved %s -> %s by %s", order.order_number, current, status, actor.pk)

    if notes is not None:
        Order.objects.filter(pk=order.pk).update(notes=notes, updated_at=timezone.now())

    order.refresh_from_db()
    return order


def bulk_update_status(order_ids, status: str, actor: User) -> BulkUpdateResult:
    """
    Apply ``update_order`` to each order independently, collecting failures.
    """
    if not authorize(actor, User.Role.ADMIN):
        raise ForbiddenError("Forbidden - Admin access required")
    if not order_ids or not isinstance(order_ids, (list, tuple)):
        raise ValidationError("Order IDs are required")
    if not status:
        raise ValidationError("Status is required")
    if status not in Order.OrderStatus.values:
        raise ValidationError("Invalid status")

    result = BulkUpdateResult()
    for order_id in order_ids:
        try:
            update_order(order_id, actor, status=status)
        except StorefrontError as exc:
            result.errors.append({"id": str(order_id), "error": str(exc.detail)})
        else:
            result.modified_count += 1
    return result


def orders_for_user(user: User):
    """The user's own orders, newest first."""
    return (
        Order.objects.filter(user=user)
        .prefetch_related("items", "tracking_updates")
        .order_by("-created_at")
    )
