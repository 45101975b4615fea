"""Stateless JWT Bearer authentication for Django REST Framework.

Tokens are issued by ``modules.users.tokens`` (SimpleJWT) and signed with
HS256 using the shared ``SIGNING_KEY``.  Verification is done with PyJWT
against the same key and never touches the database: the token's claims
(``user_id``, ``email``, ``role``) are the request's identity.

Security decisions
------------------
* **Fail Closed**: any decode / validation error returns 401.
* ``algorithms`` is hard-coded to the configured value (default HS256).
  Never derived from the incoming token.
* ``exp`` is required and only ``access`` tokens are accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Lightweight principal built from verified token claims.

    Views read ``request.user.user_id`` / ``.role`` to make authorisation
    decisions without loading a ``User`` row.
    """

    user_id: UUID
    email: str
    role: str

    # DRF checks
    is_authenticated = True
    is_active = True
    is_anonymous = False

    @property
    def pk(self) -> UUID:
        return self.user_id

    @property
    def id(self) -> UUID:
        return self.user_id

    def has_role(self, *roles: str) -> bool:
        return self.role in roles

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.email} ({self.role})"


class ClaimsJWTAuthentication(BaseAuthentication):
    """DRF authentication class that validates signed Bearer tokens."""

    keyword = "Bearer"

    # ------------------------------------------------------------------
    # Public API (DRF contract)
    # ------------------------------------------------------------------

    def authenticate(self, request):
        """Return ``(AuthenticatedUser, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)
        payload = self._decode_token(token)
        user = self._build_user(payload)
        logger.debug("jwt_authenticated", user_id=str(user.user_id), role=user.role)
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @classmethod
    def _extract_token(cls, header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != cls.keyword.lower():
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _decode_token(token: str) -> dict:
        jwt_settings = settings.SIMPLE_JWT
        try:
            payload = pyjwt.decode(
                token,
                jwt_settings["SIGNING_KEY"],
                algorithms=[jwt_settings["ALGORITHM"]],
                options={"require": ["exp", "user_id", "role"]},
            )
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed("Invalid or expired token.") from exc

        if payload.get("token_type") != "access":
            raise AuthenticationFailed("Invalid or expired token.")
        return payload

    @staticmethod
    def _build_user(payload: dict) -> AuthenticatedUser:
        try:
            user_id = UUID(str(payload["user_id"]))
        except ValueError as exc:
            raise AuthenticationFailed("Invalid or expired token.") from exc
        return AuthenticatedUser(
            user_id=user_id,
            email=payload.get("email", ""),
            role=payload["role"],
        )
