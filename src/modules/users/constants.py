"""User domain constants."""

from django.db import models


class UserRole(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    RESTAURANT = "restaurant", "Restaurant"
    DELIVERY_AGENT = "delivery_agent", "Delivery agent"
    ADMIN = "admin", "Admin"


SELF_REGISTERABLE_ROLES: frozenset[str] = frozenset(
    {UserRole.CUSTOMER.value, UserRole.RESTAURANT.value, UserRole.DELIVERY_AGENT.value}
)

PROFILE_CACHE_TTL = 300
PASSWORD_MIN_LENGTH = 8
