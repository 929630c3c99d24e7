"""
Order serializers for the storefront API.

Output uses the camelCase payload shape consumed by the storefront
front-end. Input serializers only parse and coerce types; business
invariants (non-empty items, required address, owner or guest) are
enforced by ``orders.services``.
"""

from rest_framework import serializers

from .models import Order, OrderItem, TrackingUpdate


class OrderItemSerializer(serializers.ModelSerializer):
    product = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ['product', 'name', 'price', 'quantity', 'image']
        read_only_fields = fields


class TrackingUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = TrackingUpdate
        fields = ['status', 'message', 'timestamp']
        read_only_fields = fields


class DeliveryAddressSerializer(serializers.Serializer):
    street = serializers.CharField(source='delivery_street')
    city = serializers.CharField(source='delivery_city')
    state = serializers.CharField(source='delivery_state')
    pincode = serializers.CharField(source='delivery_pincode')


class OrderSerializer(serializers.ModelSerializer):
    """
    Full order representation, items and tracking history included.
    """

    orderNumber = serializers.CharField(source='order_number', read_only=True)
    user = serializers.PrimaryKeyRelatedField(read_only=True)
    guestInfo = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=10, decimal_places=2, read_only=True)
    deliveryAddress = DeliveryAddressSerializer(source='*', read_only=True)
    deliveryCharge = serializers.DecimalField(source='delivery_charge', max_digits=10, decimal_places=2, read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True)
    paymentStatus = serializers.CharField(source='payment_status', read_only=True)
    trackingUpdates = TrackingUpdateSerializer(source='tracking_updates', many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'orderNumber',
            'user',
            'guestInfo',
            'items',
            'totalAmount',
            'deliveryAddress',
            'deliveryCharge',
            'paymentMethod',
            'paymentStatus',
            'status',
            'notes',
            'trackingUpdates',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields

    def get_guestInfo(self, obj):
        if not obj.is_guest:
            return None
        return {
            'name': obj.guest_name,
            'phone': obj.guest_phone,
            'email': obj.guest_email or None,
        }


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class AddressInputSerializer(serializers.Serializer):
    street = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(required=False, allow_blank=True)
    state = serializers.CharField(required=False, allow_blank=True)
    pincode = serializers.CharField(required=False, allow_blank=True)


class GuestInfoInputSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True)


class OrderCreateSerializer(serializers.Serializer):
    """Parses the checkout payload."""

    items = OrderItemInputSerializer(many=True, allow_empty=True, required=False)
    totalAmount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    deliveryAddress = AddressInputSerializer(required=False, allow_null=True)
    deliveryCharge = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True,
    )
    paymentMethod = serializers.ChoiceField(
        choices=Order.PaymentMethod.choices, required=False, allow_null=True,
    )
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    guestInfo = GuestInfoInputSerializer(required=False, allow_null=True)


class OrderAdminUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.OrderStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class BulkStatusUpdateSerializer(serializers.Serializer):
    orderIds = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    status = serializers.CharField(required=False, allow_blank=True, default='')
