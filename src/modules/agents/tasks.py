"""Celery tasks of the agents module."""

from __future__ import annotations

from typing import Dict

import structlog
from celery import shared_task

from modules.agents.repositories import DeliveryAgentDjangoRepository

logger = structlog.get_logger(__name__)


@shared_task(name="agents.reconcile_delivery_flags", ignore_result=True)
def reconcile_delivery_flags() -> Dict[str, int]:
    """Repair ``is_on_delivery`` flags that drifted from the open deliveries.

    Scheduled by Celery beat; safe to call directly.
    """
    result = DeliveryAgentDjangoRepository().reconcile_delivery_flags()
    logger.info("agents.reconcile_finished", **result)
    return result
