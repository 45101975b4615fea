"""Role-based DRF permissions.

The role travels inside the access token (see ``ClaimsJWTAuthentication``).
Authenticated callers with the wrong role get 403.
"""

from __future__ import annotations

from typing import ClassVar, Tuple

from rest_framework.permissions import BasePermission


class HasRole(BasePermission):
    allowed_roles: ClassVar[Tuple[str, ...]] = ()
    message = "Your role is not allowed to perform this action."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False
        return getattr(user, "role", None) in self.allowed_roles


class IsCustomer(HasRole):
    allowed_roles = ("customer",)
    message = "Only customers can perform this action."


class IsRestaurant(HasRole):
    allowed_roles = ("restaurant",)
    message = "Only restaurant accounts can perform this action."


class IsDeliveryAgent(HasRole):
    allowed_roles = ("delivery_agent",)
    message = "Only delivery agents can perform this action."


class IsCustomerOrRestaurant(HasRole):
    allowed_roles = ("customer", "restaurant")
