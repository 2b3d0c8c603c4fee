import math
from collections import OrderedDict, namedtuple

from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


Page = namedtuple('Page', ['items', 'total', 'page', 'limit', 'page_count'])


def parse_page_params(params, default_limit=10, max_limit=100):
    """Read ``page`` and ``limit`` from query params, falling back to defaults."""
    try:
        page = int(params.get('page', 1))
        limit = int(params.get('limit', default_limit))
    except (TypeError, ValueError):
        raise ValidationError({'page': ['page and limit must be integers']})
    if page < 1 or limit < 1:
        raise ValidationError({'page': ['page and limit must be positive']})
    return page, min(limit, max_limit)


def paginate(queryset, page, limit):
    """
    Slice ``queryset`` into one page.

    ``page_count`` is ``ceil(total / limit)``. A page past the end yields an
    empty item list rather than an error.
    """
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit]) if offset < total else []
    return Page(items, total, page, limit, math.ceil(total / limit))


def paginated_body(page, data, **extra):
    return OrderedDict([
        ('success', True),
        ('count', len(data)),
        ('total', page.total),
        ('page', page.page),
        ('page_count', page.page_count),
        *extra.items(),
        ('data', data),
    ])


class EnvelopePageNumberPagination(PageNumberPagination):
    """
    Page-number pagination using ``page``/``limit`` params that returns:
    {
        "success": true,
        "count": number,
        "total": number,
        "page": number,
        "page_count": number,
        "data": []
    }
    """
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100
    page_query_param = 'page'

    def paginate_queryset(self, queryset, request, view=None):
        page, limit = parse_page_params(
            request.query_params, default_limit=self.page_size, max_limit=self.max_page_size
        )
        self.result = paginate(queryset, page, limit)
        return self.result.items

    def get_paginated_response(self, data):
        return Response(paginated_body(self.result, data))
