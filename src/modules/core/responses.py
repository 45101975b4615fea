"""Success envelope helpers: ``{"success": true, "data" | "message": ...}``."""

from __future__ import annotations

from typing import Any, Optional

from rest_framework import status as http_status
from rest_framework.response import Response


def success(
    data: Any = None,
    message: Optional[str] = None,
    status: int = http_status.HTTP_200_OK,
) -> Response:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return Response(body, status=status)


def created(data: Any = None, message: Optional[str] = None) -> Response:
    return success(data, message, status=http_status.HTTP_201_CREATED)
