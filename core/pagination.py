import math

from django.core.paginator import Page
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """
    Page/limit pagination returning ``{success, <key>, pagination}``.

    ``results_key`` lets each endpoint keep its own collection name
    (``data`` for reviews, ``orders`` for the admin order listing).
    A page past the end yields an empty list rather than a 404.
    """

    page_query_param = "page"
    page_size_query_param = "limit"
    page_size = 10
    max_page_size = 100
    results_key = "data"

    def get_page_number(self, request, paginator):
        try:
            return max(int(request.query_params.get(self.page_query_param, 1)), 1)
        except (TypeError, ValueError):
            return 1

    def paginate_queryset(self, queryset, request, view=None):
        page_size = self.get_page_size(request)
        if not page_size:
            return None

        paginator = self.django_paginator_class(queryset, page_size)
        page_number = self.get_page_number(request, paginator)
        if page_number > paginator.num_pages:
            self.page = Page([], page_number, paginator)
        else:
            self.page = paginator.page(page_number)

        self.request = request
        return list(self.page)

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return Response({
            "success": True,
            self.results_key: data,
            "pagination": {
                "total": total,
                "page": self.page.number,
                "pages": math.ceil(total / limit) if limit else 0,
                "limit": limit,
            },
        })


class OrderPagination(EnvelopePagination):
    page_size = 50
    results_key = "orders"
