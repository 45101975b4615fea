"""Rating model.

One row per rated target: an order can carry a restaurant rating and an
agent rating, each given once by the ordering customer.  Ratings are
immutable after creation.
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.ratings.constants import MAX_SCORE, MIN_SCORE, RatingTarget


class Rating(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ratings",
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="ratings",
    )
    target_type = models.CharField(max_length=20, choices=RatingTarget.choices)
    restaurant = models.ForeignKey(
        "restaurants.Restaurant",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="ratings",
    )
    delivery_agent = models.ForeignKey(
        "agents.DeliveryAgent",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="ratings",
    )
    score = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_SCORE), MaxValueValidator(MAX_SCORE)],
    )
    comment = models.TextField(blank=True, default="")

    class Meta:
        db_table = "ratings"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "order", "target_type"],
                name="ratings_user_order_target_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(score__gte=MIN_SCORE, score__lte=MAX_SCORE),
                name="ratings_score_range",
            ),
        ]
        indexes = [
            models.Index(fields=["restaurant", "target_type"], name="ratings_restaurant_idx"),
            models.Index(fields=["delivery_agent", "target_type"], name="ratings_agent_idx"),
        ]

    @property
    def target_id(self):
        if self.target_type == RatingTarget.RESTAURANT.value:
            return self.restaurant_id
        return self.delivery_agent_id

    def __str__(self) -> str:
        return f"{self.target_type} rating {self.score} for order {self.order_id}"
