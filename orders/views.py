"""
Order ViewSets for the storefront API.

- OrderViewSet: checkout, lookup by order number, the caller's own orders,
  customer and guest cancellation, and the cron-triggered auto-cancel sweep
- AdminOrderViewSet: back-office listing, detail, status progression and
  bulk status updates (admin role required)

Write endpoints are rate limited and every mutation is written to the
audit log.
"""

import hmac
import logging

from django.conf import settings
from django.utils.decorators import method_decorator
from django_filters.rest_framework import DjangoFilterBackend
from django_ratelimit.decorators import ratelimit
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from authentication.audit import get_client_ip, log_action
from authentication.models import AuditLog, User
from authentication.permissions import IsAdmin, IsCustomer, authorize
from core.exceptions import NotFoundError, StorefrontError, UnauthorizedError
from core.pagination import OrderPagination

from . import services
from .models import Order
from .serializers import (
    BulkStatusUpdateSerializer,
    OrderAdminUpdateSerializer,
    OrderCreateSerializer,
    OrderSerializer,
)

logger = logging.getLogger(__name__)


def _has_cron_secret(request) -> bool:
    expected = settings.CRON_SECRET
    if not expected:
        return False
    supplied = request.headers.get('Authorization', '')
    return hmac.compare_digest(supplied.encode(), f"Bearer {expected}".encode())


class OrderViewSet(viewsets.GenericViewSet):
    """
    Customer-facing order endpoints.

    Identity is optional for checkout and lookup by order number; the
    caller's order history and authenticated cancellation require a token.
    """

    serializer_class = OrderSerializer
    permission_classes = [AllowAny]
    queryset = Order.objects.prefetch_related('items', 'tracking_updates')
    lookup_field = 'order_number'

    def list(self, request):
        """
        ``?orderNumber=`` returns that order to anyone holding the number;
        otherwise the authenticated caller's orders, newest first.
        """
        order_number = request.query_params.get('orderNumber')
        if order_number:
            order = services.get_order_by_number(order_number)
            return Response({'success': True, 'order': OrderSerializer(order).data})

        if not authorize(request.user, User.Role.USER):
            raise UnauthorizedError("Unauthorized")

        orders = services.orders_for_user(request.user)
        return Response({'success': True, 'orders': OrderSerializer(orders, many=True).data})

    def retrieve(self, request, order_number=None):
        order = services.get_order_by_number(order_number)
        return Response({'success': True, 'order': OrderSerializer(order).data})

    @method_decorator(ratelimit(key='user_or_ip', rate='5/m', method='POST'))
    @method_decorator(ratelimit(key='ip', rate='10/m', method='POST'))
    def create(self, request):
        """
        Place an order.

        Authenticated callers own the order; anonymous callers must send
        ``guestInfo`` with name and phone.
        """
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = request.user if request.user.is_authenticated else None

        try:
            order = services.create_order(
                user=user,
                items=[dict(item) for item in data.get('items') or []],
                total_amount=data['totalAmount'],
                delivery_address=dict(data['deliveryAddress']) if data.get('deliveryAddress') else None,
                delivery_charge=data.get('deliveryCharge'),
                payment_method=data.get('paymentMethod'),
                notes=data.get('notes') or '',
                guest_info=dict(data['guestInfo']) if data.get('guestInfo') else None,
            )
        except StorefrontError as exc:
            log_action(request, 'CREATE', 'ORDER', None, AuditLog.Status.FAILURE, {'error': str(exc.detail)})
            raise

        log_action(
            request, 'CREATE', 'ORDER', order.order_number, AuditLog.Status.SUCCESS,
            {'total': str(order.total_amount), 'guest': order.is_guest},
        )
        return Response(
            {
                'success': True,
                'message': 'Order created successfully',
                'order': OrderSerializer(order).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['put'], permission_classes=[IsCustomer])
    @method_decorator(ratelimit(key='user', rate='10/m', method='PUT'))
    def cancel(self, request, order_number=None):
        """Cancel a pending order owned by the caller."""
        try:
            order = services.cancel_order(order_number, request.user)
        except StorefrontError as exc:
            log_action(request, 'CANCEL', 'ORDER', order_number, AuditLog.Status.FAILURE, {'error': str(exc.detail)})
            raise

        log_action(request, 'CANCEL', 'ORDER', order_number, AuditLog.Status.SUCCESS)
        return Response({
            'success': True,
            'message': 'Order cancelled successfully',
            'order': OrderSerializer(order).data,
        })

    @action(
        detail=True,
        methods=['put'],
        url_path='cancel-guest',
        permission_classes=[AllowAny],
        authentication_classes=[],
    )
    @method_decorator(ratelimit(key='ip', rate='10/m', method='PUT'))
    def cancel_guest(self, request, order_number=None):
        """
        Cancel a pending order without authentication.

        Possession of the order number is the only credential checked here.
        """
        try:
            order = services.cancel_guest_order(order_number)
        except StorefrontError as exc:
            log_action(request, 'CANCEL_GUEST', 'ORDER', order_number, AuditLog.Status.FAILURE, {'error': str(exc.detail)})
            raise

        log_action(request, 'CANCEL_GUEST', 'ORDER', order_number, AuditLog.Status.SUCCESS)
        return Response({
            'success': True,
            'message': 'Order cancelled successfully',
            'order': OrderSerializer(order).data,
        })

    @action(
        detail=False,
        methods=['post'],
        url_path='auto-cancel',
        permission_classes=[AllowAny],
        authentication_classes=[],
    )
    def auto_cancel(self, request):
        """
        Cancel pending orders older than the confirmation window.

        Meant for an hourly cron job; requires ``Authorization: Bearer
        <CRON_SECRET>``.
        """
        if not _has_cron_secret(request):
            logger.warning("Auto-cancel rejected: bad cron secret from %s", get_client_ip(request))
            log_action(request, 'AUTO_CANCEL', 'ORDER', None, AuditLog.Status.BLOCKED)
            raise UnauthorizedError("Unauthorized")

        result = services.auto_cancel_stale_orders()
        log_action(
            request, 'AUTO_CANCEL', 'ORDER', None, AuditLog.Status.SUCCESS,
            {'cancelled': result.order_numbers, 'errors': result.errors},
        )

        if result.cancelled_count:
            message = f"Successfully cancelled {result.cancelled_count} pending orders"
        else:
            message = "No pending orders to cancel"
        return Response({
            'success': True,
            'message': message,
            'cancelledCount': result.cancelled_count,
            'orderNumbers': result.order_numbers,
            'errors': result.errors,
        })


class AdminOrderViewSet(viewsets.GenericViewSet):
    """
    Back-office order management. Admin role required for every action.
    """

    serializer_class = OrderSerializer
    permission_classes = [IsAdmin]
    queryset = Order.objects.prefetch_related('items', 'tracking_updates').order_by('-created_at')
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status']
    pagination_class = OrderPagination
    lookup_value_regex = r'\d+'

    def _get_order(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except Order.DoesNotExist:
            raise NotFoundError("Order not found")

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(OrderSerializer(page, many=True).data)

    def retrieve(self, request, pk=None):
        return Response({'success': True, 'order': OrderSerializer(self._get_order(pk)).data})

    @method_decorator(ratelimit(key='user', rate='30/m', method='PATCH'))
    def partial_update(self, request, pk=None):
        """Move an order along its lifecycle and/or edit its notes."""
        serializer = OrderAdminUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = services.update_order(
                pk,
                request.user,
                status=serializer.validated_data.get('status'),
                notes=serializer.validated_data.get('notes'),
            )
        except StorefrontError as exc:
            log_action(request, 'UPDATE_STATUS', 'ORDER', pk, AuditLog.Status.FAILURE, {'error': str(exc.detail)})
            raise

        log_action(
            request, 'UPDATE_STATUS', 'ORDER', pk, AuditLog.Status.SUCCESS,
            {'new_status': order.status},
        )
        return Response({
            'success': True,
            'message': 'Order updated successfully',
            'order': OrderSerializer(order).data,
        })

    @action(detail=False, methods=['patch'], url_path='bulk-update')
    @method_decorator(ratelimit(key='user', rate='10/m', method='PATCH'))
    def bulk_update(self, request):
        serializer = BulkStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.bulk_update_status(
            serializer.validated_data['orderIds'],
            serializer.validated_data['status'],
            request.user,
        )
        log_action(
            request, 'BULK_UPDATE_STATUS', 'ORDER', None, AuditLog.Status.SUCCESS,
            {'modified': result.modified_count, 'errors': result.errors},
        )
        return Response({
            'success': True,
            'modifiedCount': result.modified_count,
            'errors': result.errors,
        })
