"""Delivery-agent / delivery domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, Forbidden, NotFound, StateConflict


class AgentNotFound(NotFound):
    default_message = "Delivery agent not found."


class AgentAlreadyExists(Conflict):
    default_message = "This account already has a delivery agent profile."


class AgentInactive(StateConflict):
    default_message = "Delivery agent is deactivated."


class DeliveryNotFound(NotFound):
    default_message = "Delivery not found."


class NotAssignedAgent(Forbidden):
    default_message = "This delivery is assigned to another agent."


class NoAgentAvailable(NotFound):
    default_message = "No delivery agent available near the pickup point."


class MissingPickupLocation(StateConflict):
    default_message = "Restaurant has no pickup coordinates configured."


class AssignmentConflict(Conflict):
    default_message = "Assignment conflict: order or agent state changed."


class OrderNotAssignable(AssignmentConflict):
    default_message = "Order is already assigned or not in an assignable status."


class AgentUnavailable(AssignmentConflict):
    default_message = "Agent is no longer available for assignment."
