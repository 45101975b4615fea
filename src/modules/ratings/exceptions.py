"""Ratings domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, StateConflict, ValidationFailed


class AlreadyRated(Conflict):
    default_message = "This order has already been rated."


class OrderNotDelivered(StateConflict):
    default_message = "Only delivered orders can be rated."


class NoAgentToRate(ValidationFailed):
    default_message = "This order had no delivery agent to rate."
