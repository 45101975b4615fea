from __future__ import annotations

import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """``?page=`` / ``?limit=`` pagination wrapped in the success envelope.

    Works on querysets and on plain lists (cached results).
    """

    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data) -> Response:
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return Response(
            {
                "success": True,
                "data": data,
                "pagination": {
                    "page": self.page.number,
                    "limit": limit,
                    "total": total,
                    "total_pages": math.ceil(total / limit) if limit else 0,
                    "has_next": self.page.has_next(),
                    "has_prev": self.page.has_previous(),
                },
            }
        )


def paginate(request, items, view=None) -> Response:
    """Paginate a list of output DTOs into the standard envelope."""
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(items, request, view=view)
    return paginator.get_paginated_response([item.model_dump(mode="json") for item in page])
