from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            OrderCancelled,
            OrderPlaced,
            OrderRejected,
            OrderStatusChanged,
        )
        from modules.orders.handlers import order_event_handler
        from shared.infrastructure.bus import event_bus

        for event_class in (OrderPlaced, OrderStatusChanged, OrderCancelled, OrderRejected):
            event_bus.subscribe(event_class, order_event_handler)
