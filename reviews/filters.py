import django_filters

from .models import Review

STATUS_ALL = 'all'


class ReviewFilter(django_filters.FilterSet):
    """
    Query filters for the review listing.

    ``status`` defaults to ``approved``; ``status=all`` lifts the filter
    (visibility rules still apply on top). ``sort`` accepts ``createdAt``,
    ``helpful`` and ``rating``, each optionally prefixed with ``-``.
    """

    product = django_filters.NumberFilter(field_name='product_id')
    user = django_filters.NumberFilter(field_name='user_id')
    rating = django_filters.NumberFilter(field_name='rating')
    status = django_filters.ChoiceFilter(
        choices=Review.Status.choices + [(STATUS_ALL, 'All')],
        method='filter_status',
    )
    sort = django_filters.OrderingFilter(
        fields=(
            ('created_at', 'createdAt'),
            ('helpful_count', 'helpful'),
            ('rating', 'rating'),
        ),
    )

    class Meta:
        model = Review
        fields = ['product', 'user', 'rating', 'status']

    def __init__(self, data=None, *args, **kwargs):
        data = data.copy() if data is not None else {}
        if not data.get('status'):
            data['status'] = Review.Status.APPROVED
        if not data.get('sort'):
            data['sort'] = '-createdAt'
        super().__init__(data, *args, **kwargs)

    def filter_status(self, queryset, name, value):
        if value == STATUS_ALL:
            return queryset
        return queryset.filter(status=value)
