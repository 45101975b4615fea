"""DeliveryAgent and LocationUpdate models.

- ``is_available`` (agent wants work) and ``is_on_delivery`` (agent holds
  an active delivery) are independent booleans; ``state`` derives the
  read-only ``offline`` / ``idle`` / ``busy`` view.  Only ``idle`` agents
  can be assigned, enforced by the conditional UPDATE in the repository.
- ``total_deliveries`` / ``total_earnings`` are bumped in the same
  transaction that marks a delivery as delivered.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.agents.constants import AgentState, VehicleType
from modules.core.models import BaseModel


class DeliveryAgent(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="delivery_agent",
    )
    vehicle_type = models.CharField(max_length=20, choices=VehicleType.choices)
    license_number = models.CharField(max_length=50, blank=True, default="")
    is_active = models.BooleanField(default=True)
    is_available = models.BooleanField(default=False)
    is_on_delivery = models.BooleanField(default=False)
    current_latitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    current_longitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )
    location_updated_at = models.DateTimeField(null=True, blank=True)
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    total_ratings = models.PositiveIntegerField(default=0)
    total_deliveries = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        db_table = "delivery_agents"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["is_active", "is_available", "is_on_delivery"],
                name="agents_matchable_idx",
            ),
            models.Index(
                fields=["current_latitude", "current_longitude"],
                name="agents_location_idx",
            ),
        ]

    @property
    def state(self) -> str:
        if self.is_on_delivery:
            return AgentState.BUSY.value
        if self.is_active and self.is_available:
            return AgentState.IDLE.value
        return AgentState.OFFLINE.value

    def __str__(self) -> str:
        return f"Agent {self.id} ({self.state})"


class LocationUpdate(BaseModel):
    """Append-only trail of reported agent positions."""

    agent = models.ForeignKey(
        DeliveryAgent,
        on_delete=models.CASCADE,
        related_name="location_updates",
    )
    latitude = models.FloatField()
    longitude = models.FloatField()
    speed = models.FloatField(null=True, blank=True)
    bearing = models.FloatField(null=True, blank=True)
    recorded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "agent_location_updates"
        ordering = ["-recorded_at"]
        indexes = [
            models.Index(fields=["agent", "-recorded_at"], name="agent_loc_recorded_idx"),
        ]
