"""
URL configuration for the storefront project.

- Order routes (customer, guest and cron-triggered)
- Back-office order routes under ``admin/orders``
- Review routes, helpful toggle and rating statistics
- JWT token endpoints
- Admin interface
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from orders.views import AdminOrderViewSet, OrderViewSet
from reviews.views import ReviewViewSet

router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'admin/orders', AdminOrderViewSet, basename='admin-order')
router.register(r'reviews', ReviewViewSet, basename='review')

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(router.urls)),
    path('api/', include('authentication.urls')),
]
