"""Restaurant and MenuItem models.

- A restaurant profile belongs to exactly one ``restaurant``-role user.
- ``is_online`` gates order placement; new restaurants start offline.
- ``rating`` / ``total_ratings`` are aggregates maintained by the ratings
  service.
- Menu items are never hard deleted by the API: deleting one marks it
  unavailable and soft-deletes it, so order history keeps its references.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel


class Restaurant(SoftDeleteModel):
    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="restaurant",
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    address = models.TextField()
    phone = models.CharField(max_length=20, blank=True, default="")
    cuisine_type = models.CharField(max_length=50, blank=True, default="")
    is_online = models.BooleanField(default=False)
    opening_time = models.TimeField(null=True, blank=True)
    closing_time = models.TimeField(null=True, blank=True)
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    total_ratings = models.PositiveIntegerField(default=0)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    class Meta:
        db_table = "restaurants"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_online"], name="restaurants_online_idx"),
            models.Index(fields=["cuisine_type"], name="restaurants_cuisine_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class MenuItem(SoftDeleteModel):
    restaurant = models.ForeignKey(
        Restaurant,
        on_delete=models.CASCADE,
        related_name="menu_items",
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    category = models.CharField(max_length=50)
    is_available = models.BooleanField(default=True)
    image_url = models.URLField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "menu_items"
        ordering = ["category", "name"]
        indexes = [
            models.Index(
                fields=["restaurant", "is_available"],
                name="menu_items_rest_avail_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="menu_items_price_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.restaurant_id})"
