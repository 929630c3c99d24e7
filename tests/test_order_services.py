import re
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError
from django.utils import timezone

from conftest import PUNE_ADDRESS
from core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from orders import services
from orders.models import Order, TrackingUpdate

ORDER_NUMBER_RE = re.compile(r"^ORD\d{8}\d{3}$")


def _age(order, hours):
    Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - timedelta(hours=hours))


class TestOrderNumber:
    def test_format(self):
        assert ORDER_NUMBER_RE.match(services.generate_order_number())

    def test_uses_last_eight_millisecond_digits(self):
        now = datetime(2024, 3, 1, 10, 0, 0, tzinfo=dt_timezone.utc)
        millis = str(int(now.timestamp() * 1000))
        number = services.generate_order_number(now)
        assert number[3:11] == millis[-8:]


@pytest.mark.django_db
class TestCreateOrder:
    def test_guest_order_starts_pending_with_seed_tracking(self, guest_order):
        assert guest_order.status == Order.OrderStatus.PENDING
        assert guest_order.payment_status == Order.PaymentStatus.PENDING
        assert guest_order.user is None
        assert guest_order.guest_name == "Asha Patil"
        assert ORDER_NUMBER_RE.match(guest_order.order_number)

        updates = list(guest_order.tracking_updates.all())
        assert len(updates) == 1
        assert updates[0].status == Order.OrderStatus.PENDING
        assert updates[0].message == "Order placed successfully"

    def test_member_order_ignores_guest_info(self, customer, product):
        order = services.create_order(
            user=customer,
            items=[{"product": product.pk, "quantity": 1}],
            total_amount=Decimal("299.00"),
            delivery_address=dict(PUNE_ADDRESS),
            guest_info={"name": "Someone Else", "phone": "111"},
        )
        assert order.user == customer
        assert order.guest_name == ""
        assert not order.is_guest

    def test_items_snapshot_product_data(self, guest_order, product):
        item = guest_order.items.get()
        assert item.name == product.name
        assert item.price == product.price
        assert item.image == product.cover_image
        assert item.quantity == 2

        product.price = Decimal("349.00")
        product.save()
        item.refresh_from_db()
        assert item.price == Decimal("299.00")

    def test_online_payment_stays_pending(self, customer, product):
        order = services.create_order(
            user=customer,
            items=[{"product": product.pk, "quantity": 1}],
            total_amount=Decimal("299.00"),
            delivery_address=dict(PUNE_ADDRESS),
            payment_method=Order.PaymentMethod.ONLINE,
        )
        assert order.payment_method == Order.PaymentMethod.ONLINE
        assert order.payment_status == Order.PaymentStatus.PENDING

    @pytest.mark.parametrize("items", [[], None])
    def test_empty_items_rejected(self, customer, items):
        with pytest.raises(ValidationError):
            services.create_order(
                user=customer, items=items, total_amount=Decimal("0"),
                delivery_address=dict(PUNE_ADDRESS),
            )
        assert not Order.objects.exists()

    def test_missing_city_rejected(self, customer, product):
        with pytest.raises(ValidationError, match="Delivery address is required"):
            services.create_order(
                user=customer,
                items=[{"product": product.pk, "quantity": 1}],
                total_amount=Decimal("299.00"),
                delivery_address={"street": "12 MG Road"},
            )

    def test_guest_without_phone_rejected(self, product):
        with pytest.raises(ValidationError, match="Guest name and phone"):
            services.create_order(
                user=None,
                items=[{"product": product.pk, "quantity": 1}],
                total_amount=Decimal("299.00"),
                delivery_address=dict(PUNE_ADDRESS),
                guest_info={"name": "Asha"},
            )

    def test_unknown_product_rejected(self, customer):
        with pytest.raises(ValidationError, match="not found"):
            services.create_order(
                user=customer,
                items=[{"product": 999999, "quantity": 1}],
                total_amount=Decimal("10.00"),
                delivery_address=dict(PUNE_ADDRESS),
            )

    def test_inactive_product_rejected(self, customer, product):
        product.is_active = False
        product.save()
        with pytest.raises(ValidationError, match="not available"):
            services.create_order(
                user=customer,
                items=[{"product": product.pk, "quantity": 1}],
                total_amount=Decimal("299.00"),
                delivery_address=dict(PUNE_ADDRESS),
            )

    def test_order_number_collision_is_retried(self, guest_order, customer, product):
        taken = guest_order.order_number
        with mock.patch.object(
            services, "generate_order_number", side_effect=[taken, "ORD00000000001"],
        ):
            order = services.create_order(
                user=customer,
                items=[{"product": product.pk, "quantity": 1}],
                total_amount=Decimal("299.00"),
                delivery_address=dict(PUNE_ADDRESS),
            )
        assert order.order_number == "ORD00000000001"
        assert Order.objects.count() == 2


@pytest.mark.django_db
class TestCancelOrder:
    def test_owner_cancels_pending_order(self, member_order, customer):
        order = services.cancel_order(member_order.order_number, customer)
        assert order.status == Order.OrderStatus.CANCELLED

        updates = list(order.tracking_updates.all())
        assert len(updates) == 2
        assert updates[-1].status == Order.OrderStatus.CANCELLED
        assert updates[-1].message == "Order cancelled by customer"

    def test_other_user_is_forbidden(self, member_order, other_customer):
        with pytest.raises(ForbiddenError):
            services.cancel_order(member_order.order_number, other_customer)
        member_order.refresh_from_db()
        assert member_order.status == Order.OrderStatus.PENDING

    def test_admin_may_cancel_any_order(self, member_order, admin_user):
        order = services.cancel_order(member_order.order_number, admin_user)
        assert order.status == Order.OrderStatus.CANCELLED

    def test_unknown_order(self, customer):
        with pytest.raises(NotFoundError):
            services.cancel_order("ORD00000000000", customer)

    def test_non_pending_order_unchanged(self, member_order, customer):
        Order.objects.filter(pk=member_order.pk).update(status=Order.OrderStatus.SHIPPED)
        with pytest.raises(InvalidStateError, match="Cannot cancel order with status: shipped"):
            services.cancel_order(member_order.order_number, customer)

        member_order.refresh_from_db()
        assert member_order.status == Order.OrderStatus.SHIPPED
        assert member_order.tracking_updates.count() == 1

    def test_losing_a_race_raises_invalid_state(self, member_order, customer):
        # The in-memory copy still looks pending, but storage has moved on.
        Order.objects.filter(pk=member_order.pk).update(status=Order.OrderStatus.CANCELLED)
        with mock.patch.object(services, "get_order_by_number", return_value=member_order):
            with pytest.raises(InvalidStateError, match="cancelled"):
                services.cancel_order(member_order.order_number, customer)
        assert member_order.tracking_updates.count() == 1

    def test_guest_cancel(self, guest_order):
        order = services.cancel_guest_order(guest_order.order_number)
        assert order.status == Order.OrderStatus.CANCELLED
        assert order.tracking_updates.last().message == "Order cancelled by customer"

    def test_guest_cancel_of_cancelled_order(self, guest_order):
        services.cancel_guest_order(guest_order.order_number)
        with pytest.raises(InvalidStateError) as excinfo:
            services.cancel_guest_order(guest_order.order_number)
        assert str(excinfo.value.detail) == (
            "Cannot cancel order with status: cancelled. Only pending orders can be cancelled."
        )


@pytest.mark.django_db
class TestAutoCancel:
    def test_cancels_only_stale_pending_orders(self, guest_order, member_order):
        _age(guest_order, 25)

        result = services.auto_cancel_stale_orders()

        assert result.cancelled_count == 1
        assert result.order_numbers == [guest_order.order_number]
        assert result.errors == []

        guest_order.refresh_from_db()
        member_order.refresh_from_db()
        assert guest_order.status == Order.OrderStatus.CANCELLED
        assert member_order.status == Order.OrderStatus.PENDING
        assert guest_order.tracking_updates.last().message == (
            "Order auto-cancelled due to no confirmation within 24 hours"
        )

    def test_second_sweep_cancels_nothing(self, guest_order):
        _age(guest_order, 30)
        assert services.auto_cancel_stale_orders().cancelled_count == 1
        second = services.auto_cancel_stale_orders()
        assert second.cancelled_count == 0
        assert second.order_numbers == []
        assert guest_order.tracking_updates.count() == 2

    def test_confirmed_orders_are_left_alone(self, member_order, admin_user):
        _age(member_order, 48)
        services.update_order(member_order.pk, admin_user, status=Order.OrderStatus.CONFIRMED)
        assert services.auto_cancel_stale_orders().cancelled_count == 0

    def test_explicit_clock(self, guest_order):
        result = services.auto_cancel_stale_orders(now=timezone.now() + timedelta(hours=25))
        assert result.order_numbers == [guest_order.order_number]

    def test_failure_on_one_order_does_not_stop_the_sweep(self, guest_order, member_order):
        _age(guest_order, 26)
        _age(member_order, 25)
        real_apply = services._apply_transition

        def flaky(order_pk, *args):
            if order_pk == guest_order.pk:
                raise DatabaseError("disk I/O error")
            return real_apply(order_pk, *args)

        with mock.patch.object(services, "_apply_transition", side_effect=flaky):
            result = services.auto_cancel_stale_orders()

        assert result.order_numbers == [member_order.order_number]
        assert result.errors == [
            {"orderNumber": guest_order.order_number, "error": "disk I/O error"}
        ]
        guest_order.refresh_from_db()
        assert guest_order.status == Order.OrderStatus.PENDING

    def test_customer_cancel_after_sweep_sees_invalid_state(self, member_order, customer):
        _age(member_order, 25)
        services.auto_cancel_stale_orders()
        with pytest.raises(InvalidStateError):
            services.cancel_order(member_order.order_number, customer)
        assert member_order.tracking_updates.filter(status=Order.OrderStatus.CANCELLED).count() == 1


@pytest.mark.django_db
class TestAdminUpdates:
    def test_progression_appends_tracking(self, member_order, admin_user):
        for status in ("confirmed", "processing", "shipped", "delivered"):
            order = services.update_order(member_order.pk, admin_user, status=status)
            assert order.status == status

        messages = list(
            TrackingUpdate.objects.filter(order=member_order).values_list("message", flat=True)
        )
        assert messages[-1] == "Order status updated to delivered"
        assert len(messages) == 5

    def test_skipping_a_step_is_rejected(self, member_order, admin_user):
        with pytest.raises(InvalidStateError):
            services.update_order(member_order.pk, admin_user, status=Order.OrderStatus.SHIPPED)

    def test_cancelled_is_terminal(self, member_order, admin_user, customer):
        services.cancel_order(member_order.order_number, customer)
        with pytest.raises(InvalidStateError):
            services.update_order(member_order.pk, admin_user, status=Order.OrderStatus.CONFIRMED)

    def test_requires_admin(self, member_order, customer):
        with pytest.raises(ForbiddenError):
            services.update_order(member_order.pk, customer, status=Order.OrderStatus.CONFIRMED)

    def test_notes_only(self, member_order, admin_user):
        order = services.update_order(member_order.pk, admin_user, notes="Gift wrap")
        assert order.notes == "Gift wrap"
        assert order.status == Order.OrderStatus.PENDING

    def test_bulk_update_collects_errors(self, member_order, guest_order, admin_user):
        Order.objects.filter(pk=guest_order.pk).update(status=Order.OrderStatus.DELIVERED)
        result = services.bulk_update_status(
            [member_order.pk, guest_order.pk, 999999], Order.OrderStatus.CONFIRMED, admin_user,
        )
        assert result.modified_count == 1
        assert {error["id"] for error in result.errors} == {str(guest_order.pk), "999999"}

    def test_bulk_update_requires_ids(self, admin_user):
        with pytest.raises(ValidationError):
            services.bulk_update_status([], Order.OrderStatus.CONFIRMED, admin_user)
