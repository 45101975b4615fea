"""User domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound, Unauthorized


class UserAlreadyExists(Conflict):
    default_message = "Email already registered."


class UserNotFound(NotFound):
    default_message = "User not found."


class InvalidCredentials(Unauthorized):
    default_message = "Invalid email or password."
