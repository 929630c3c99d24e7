"""
Review ViewSet for the storefront API.

- Listing with product/user/rating/status filters, sorting and page/limit
  pagination
- Create, edit and delete with ownership and moderation rules
- Helpful toggle and per-product rating statistics

Write endpoints are rate limited and every mutation is written to the
audit log.
"""

from django_filters.rest_framework import DjangoFilterBackend
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from authentication.audit import log_action
from authentication.models import AuditLog
from authentication.permissions import IsCustomer
from core.exceptions import NotFoundError, StorefrontError
from core.pagination import EnvelopePagination

from . import services
from .filters import ReviewFilter
from .models import Review
from .serializers import ReviewCreateSerializer, ReviewSerializer, ReviewUpdateSerializer


class ReviewViewSet(viewsets.GenericViewSet):
    """
    Product reviews.

    Anyone may read approved reviews; signed-in users also see their own
    pending or rejected reviews, and admins see everything.
    """

    serializer_class = ReviewSerializer
    permission_classes = [IsAuthenticatedOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReviewFilter
    pagination_class = EnvelopePagination
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        return services.visible_reviews(self.request.user)

    def get_permissions(self):
        if self.action in ('create', 'update', 'partial_update', 'destroy', 'helpful'):
            return [IsCustomer()]
        return super().get_permissions()

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(ReviewSerializer(page, many=True).data)

    def retrieve(self, request, pk=None):
        try:
            review = self.get_queryset().get(pk=pk)
        except Review.DoesNotExist:
            raise NotFoundError("Review not found")
        return Response({'success': True, 'data': ReviewSerializer(review).data})

    @method_decorator(ratelimit(key='user', rate='10/m', method='POST'))
    @method_decorator(ratelimit(key='ip', rate='20/m', method='POST'))
    def create(self, request):
        """
        Submit a review for moderation.

        ``verified`` is set when the caller has a confirmed order containing
        the product.
        """
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            review = services.create_review(
                request.user,
                data.get('product'),
                data.get('rating'),
                data.get('title'),
                data.get('comment'),
                images=data.get('images'),
            )
        except StorefrontError as exc:
            log_action(request, 'CREATE', 'REVIEW', None, AuditLog.Status.FAILURE, {'error': str(exc.detail)})
            raise

        log_action(
            request, 'CREATE', 'REVIEW', review.pk, AuditLog.Status.SUCCESS,
            {'product_id': review.product_id, 'rating': review.rating, 'verified': review.verified},
        )
        return Response(
            {
                'success': True,
                'message': 'Review submitted successfully. It will be visible after approval.',
                'data': ReviewSerializer(review).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @method_decorator(ratelimit(key='user', rate='20/m', method=['PUT', 'PATCH']))
    def update(self, request, pk=None):
        serializer = ReviewUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            review = services.update_review(
                pk,
                request.user,
                rating=data.get('rating'),
                title=data.get('title'),
                comment=data.get('comment'),
                images=data.get('images'),
                status=data.get('status'),
                admin_response=data.get('adminResponse'),
            )
        except StorefrontError as exc:
            log_action(request, 'UPDATE', 'REVIEW', pk, AuditLog.Status.FAILURE, {'error': str(exc.detail)})
            raise

        log_action(request, 'UPDATE', 'REVIEW', pk, AuditLog.Status.SUCCESS, {'status': review.status})
        return Response({
            'success': True,
            'message': 'Review updated successfully',
            'data': ReviewSerializer(review).data,
        })

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    @method_decorator(ratelimit(key='user', rate='10/m', method='DELETE'))
    def destroy(self, request, pk=None):
        try:
            services.delete_review(pk, request.user)
        except StorefrontError as exc:
            log_action(request, 'DELETE', 'REVIEW', pk, AuditLog.Status.FAILURE, {'error': str(exc.detail)})
            raise

        log_action(request, 'DELETE', 'REVIEW', pk, AuditLog.Status.SUCCESS)
        return Response({'success': True, 'message': 'Review deleted successfully'})

    @action(detail=True, methods=['post'])
    @method_decorator(ratelimit(key='user', rate='30/m', method='POST'))
    def helpful(self, request, pk=None):
        """Toggle the caller's helpful mark on a review."""
        result = services.toggle_helpful(pk, request.user)
        log_action(
            request, 'TOGGLE_HELPFUL', 'REVIEW', pk, AuditLog.Status.SUCCESS,
            {'helpful': result.helpful, 'marked': result.is_marked_by_user},
        )
        return Response({
            'success': True,
            'message': 'Marked as helpful' if result.is_marked_by_user else 'Removed helpful mark',
            'data': {
                'helpful': result.helpful,
                'isMarkedByUser': result.is_marked_by_user,
            },
        })

    @action(
        detail=False,
        methods=['get'],
        url_path=r'stats/(?P<product_id>\d+)',
        permission_classes=[AllowAny],
    )
    def stats(self, request, product_id=None):
        """Average rating, approved review count and star histogram for a product."""
        result = services.rating_statistics(int(product_id))
        return Response({
            'success': True,
            'data': {
                'averageRating': result.average_rating,
                'totalReviews': result.total_reviews,
                'distribution': {str(star): count for star, count in result.distribution.items()},
            },
        })
