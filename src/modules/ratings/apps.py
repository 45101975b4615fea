from django.apps import AppConfig


class RatingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.ratings"
    label = "ratings"

    def ready(self) -> None:
        from modules.ratings.events import RatingSubmitted
        from modules.ratings.handlers import rating_event_handler
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(RatingSubmitted, rating_event_handler)
