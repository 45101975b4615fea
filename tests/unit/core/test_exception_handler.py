"""Unit tests for the central DRF exception handler."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions as drf_exceptions

from modules.core.exceptions import (
    INTERNAL_ERROR_MESSAGE,
    AppError,
    Conflict,
    api_exception_handler,
)
from modules.orders.exceptions import MenuItemUnavailable, OrderNotFound

pytestmark = pytest.mark.unit


class _Quantity(BaseModel):
    quantity: int = Field(ge=1)


class _Unexpected(AppError):
    is_operational = False
    default_message = "Ledger out of balance."


def _handle(exc):
    return api_exception_handler(exc, {})


class TestAppErrors:
    def test_domain_error_uses_its_status_and_message(self):
        response = _handle(OrderNotFound())

        assert response.status_code == 404
        assert response.data == {"success": False, "error": "Order not found."}

    def test_details_are_included(self):
        response = _handle(MenuItemUnavailable(details={"menu_item_ids": ["a"]}))

        assert response.status_code == 400
        assert response.data["details"] == {"menu_item_ids": ["a"]}

    def test_custom_message_overrides_default(self):
        response = _handle(Conflict("Agent is busy."))
        assert response.status_code == 409
        assert response.data["error"] == "Agent is busy."

    def test_non_operational_error_is_masked(self, settings):
        settings.DEBUG = False
        response = _handle(_Unexpected())

        assert response.status_code == 500
        assert response.data["error"] == INTERNAL_ERROR_MESSAGE


class TestFrameworkErrors:
    def test_pydantic_validation_error_becomes_400_with_fields(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            _Quantity(quantity=0)

        response = _handle(exc_info.value)

        assert response.status_code == 400
        assert response.data["error"] == "Validation failed."
        assert response.data["details"][0]["field"] == "quantity"

    def test_drf_validation_error_keeps_field_details(self):
        response = _handle(drf_exceptions.ValidationError({"status": ["Invalid choice."]}))

        assert response.status_code == 400
        assert response.data["details"] == {"status": ["Invalid choice."]}

    def test_throttled_sets_retry_after(self):
        response = _handle(drf_exceptions.Throttled(wait=12))

        assert response.status_code == 429
        assert response["Retry-After"] == "12"

    def test_unexpected_exception_is_masked(self, settings):
        settings.DEBUG = False
        response = _handle(RuntimeError("db password leaked"))

        assert response.status_code == 500
        assert response.data == {"success": False, "error": INTERNAL_ERROR_MESSAGE}
