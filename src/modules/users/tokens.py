"""Access / refresh token issuing (SimpleJWT).

Custom claims (``email``, ``role``) are set on the refresh token; SimpleJWT
copies them into every access token derived from it, including tokens
minted later by the refresh endpoint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework_simplejwt.tokens import RefreshToken

from modules.users.dtos import AuthTokensDTO

if TYPE_CHECKING:
    from modules.users.models import User


def issue_tokens(user: User) -> AuthTokensDTO:
    refresh = RefreshToken.for_user(user)
    refresh["email"] = user.email
    refresh["role"] = user.role
    access = refresh.access_token
    return AuthTokensDTO(
        token=str(access),
        refresh_token=str(refresh),
        expires_in=int(access.lifetime.total_seconds()),
    )
