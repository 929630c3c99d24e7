"""
Order models for the storefront.

This module defines Order, OrderItem and TrackingUpdate:
- Order status follows pending -> confirmed -> processing -> shipped ->
  delivered, with cancelled reachable only from pending
- An order belongs either to a registered user or to a guest, never both
- Line items snapshot product name, price and image at order time
- Tracking updates form an append-only history per order
"""

from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Order(models.Model):
    """
    A customer purchase.

    The order number is assigned once by ``orders.services`` when the order
    is built and never changes afterwards. Status changes go through the
    service layer, which guards each transition with a conditional update on
    the current status.
    """

    class OrderStatus(models.TextChoices):
        PENDING = 'pending', _('Pending')
        CONFIRMED = 'confirmed', _('Confirmed')
        PROCESSING = 'processing', _('Processing')
        SHIPPED = 'shipped', _('Shipped')
        DELIVERED = 'delivered', _('Delivered')
        CANCELLED = 'cancelled', _('Cancelled')

    class PaymentMethod(models.TextChoices):
        COD = 'cod', _('Cash on delivery')
        ONLINE = 'online', _('Online')

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', _('Pending')
        PAID = 'paid', _('Paid')
        FAILED = 'failed', _('Failed')

    ALLOWED_TRANSITIONS = {
        OrderStatus.PENDING: (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
        OrderStatus.CONFIRMED: (OrderStatus.PROCESSING,),
        OrderStatus.PROCESSING: (OrderStatus.SHIPPED,),
        OrderStatus.SHIPPED: (OrderStatus.DELIVERED,),
    }

    order_number = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text=_("Human readable order reference, e.g. ORD12345678042"),
    )

    # Owner: a registered user or guest contact details, never both
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='orders',
    )
    guest_name = models.CharField(max_length=150, blank=True)
    guest_phone = models.CharField(max_length=20, blank=True)
    guest_email = models.EmailField(blank=True)

    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    delivery_charge = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )

    delivery_street = models.CharField(max_length=255)
    delivery_city = models.CharField(max_length=100)
    delivery_state = models.CharField(max_length=100)
    delivery_pincode = models.CharField(max_length=20)

    payment_method = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        default=PaymentMethod.COD,
    )
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='order_user_created_idx'),
            models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(user__isnull=False) & Q(guest_name=''))
                    | (Q(user__isnull=True) & ~Q(guest_name=''))
                ),
                name='order_user_xor_guest',
            ),
        ]
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")

    def __str__(self):
        return f"Order {self.order_number} - {self.status} - {self.total_amount}"

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, ())

    def can_be_cancelled(self) -> bool:
        return self.status == self.OrderStatus.PENDING


class OrderItem(models.Model):
    """
    One product line within an order.

    Name, price and image are copied from the product when the order is
    placed so later catalogue edits do not rewrite past orders.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='order_items',
    )
    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    image = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ['id']
        unique_together = ['order', 'product']
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")

    def __str__(self):
        return f"{self.quantity}x {self.name} in Order {self.order.order_number}"

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * self.price


class TrackingUpdate(models.Model):
    """Append-only status history entry for an order."""

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='tracking_updates',
    )
    status = models.CharField(max_length=20, choices=Order.OrderStatus.choices)
    message = models.CharField(max_length=255)
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=['order', 'timestamp'], name='tracking_order_ts_idx'),
        ]

    def __str__(self):
        return f"{self.order_id}: {self.status} - {self.message}"
