from django.apps import AppConfig


class AgentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.agents"
    label = "agents"

    def ready(self) -> None:
        from modules.agents.events import (
            AgentAvailabilityChanged,
            AgentLocationUpdated,
            DeliveryAssigned,
            DeliveryRejected,
            DeliveryStatusChanged,
        )
        from modules.agents.handlers import agent_event_handler, delivery_event_handler
        from shared.infrastructure.bus import event_bus

        for event_class in (DeliveryAssigned, DeliveryStatusChanged, DeliveryRejected):
            event_bus.subscribe(event_class, delivery_event_handler)
        for event_class in (AgentLocationUpdated, AgentAvailabilityChanged):
            event_bus.subscribe(event_class, agent_event_handler)
