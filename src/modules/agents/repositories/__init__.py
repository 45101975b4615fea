"""Delivery-agent repositories package."""

from modules.agents.repositories.django_repository import DeliveryAgentDjangoRepository
from modules.agents.repositories.interfaces import IDeliveryAgentRepository

__all__ = ["DeliveryAgentDjangoRepository", "IDeliveryAgentRepository"]
