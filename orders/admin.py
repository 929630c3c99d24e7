from django.contrib import admin

from .models import Order, OrderItem, TrackingUpdate


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'name', 'price', 'quantity', 'image']
    can_delete = False


class TrackingUpdateInline(admin.TabularInline):
    model = TrackingUpdate
    extra = 0
    readonly_fields = ['status', 'message', 'timestamp']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'user', 'guest_name', 'status', 'payment_method',
                    'payment_status', 'total_amount', 'created_at']
    list_filter = ['status', 'payment_method', 'payment_status', 'created_at']
    search_fields = ['order_number', 'user__email', 'guest_name', 'guest_phone', 'guest_email']
    readonly_fields = ['order_number', 'status', 'created_at', 'updated_at']
    inlines = [OrderItemInline, TrackingUpdateInline]
    date_hierarchy = 'created_at'
