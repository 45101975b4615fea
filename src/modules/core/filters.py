"""django-filter helpers for repositories that return cached plain lists."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Type

import django_filters
from django.db.models import QuerySet

from modules.core.exceptions import ValidationFailed


def apply_filterset(
    filterset_class: Type[django_filters.FilterSet],
    data: Optional[Mapping[str, Any]],
    queryset: QuerySet,
) -> QuerySet:
    """Run ``filterset_class`` over ``queryset``.

    Raises:
        ValidationFailed: a filter value could not be parsed.
    """
    filterset = filterset_class(data=dict(data or {}), queryset=queryset)
    if not filterset.is_valid():
        raise ValidationFailed("Invalid filter parameters.", details=filterset.errors)
    return filterset.qs


def query_filters(request, *names: str) -> dict[str, str]:
    """Pick the named query parameters that are present and non-empty."""
    params = request.query_params
    return {name: params[name] for name in names if params.get(name) not in (None, "")}
