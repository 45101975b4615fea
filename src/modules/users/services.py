"""Auth / profile service layer (Use Cases).

- Registration enforces email uniqueness and issues a token pair.
- Profile reads are read-through cached; profile writes invalidate the key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional
from uuid import UUID

import structlog
from django.db import IntegrityError, transaction

from modules.users.constants import PROFILE_CACHE_TTL
from modules.users.dtos import AuthResultDTO, AuthTokensDTO, UserOutputDTO
from modules.users.exceptions import InvalidCredentials, UserAlreadyExists, UserNotFound
from modules.users.tokens import issue_tokens
from shared.infrastructure.cache import (
    ReadThroughCache,
    build_key,
    log_degraded,
    read_through_cache,
)

if TYPE_CHECKING:
    from modules.users.dtos import LoginDTO, RegisterUserDTO, UpdateProfileDTO
    from modules.users.models import User
    from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


def profile_cache_key(user_id: UUID | str) -> str:
    return build_key("user_profile", user_id)


class AuthService:
    """Application service for identity use-cases."""

    def __init__(
        self,
        repository: IUserRepository,
        cache: Optional[ReadThroughCache] = None,
        token_issuer: Callable[[User], AuthTokensDTO] = issue_tokens,
    ) -> None:
        self._repo = repository
        self._cache = cache or read_through_cache
        self._issue_tokens = token_issuer

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def register(self, dto: RegisterUserDTO) -> AuthResultDTO:
        """Create an account and return it with a fresh token pair.

        Raises:
            UserAlreadyExists: the email is already registered.
        """
        log = logger.bind(role=dto.role)
        if self._repo.get_by_email(dto.email):
            log.warning("user.duplicate_email")
            raise UserAlreadyExists()

        try:
            with transaction.atomic():
                user = self._repo.create(dto)
        except IntegrityError as exc:
            log.warning("user.duplicate_email_race")
            raise UserAlreadyExists() from exc

        log.info("user.registered", user_id=str(user.id))
        return AuthResultDTO(
            user=UserOutputDTO.from_entity(user),
            tokens=self._issue_tokens(user),
        )

    def login(self, dto: LoginDTO) -> AuthResultDTO:
        """Verify credentials.

        Raises:
            InvalidCredentials: unknown email, wrong password or inactive user.
        """
        user = self._repo.get_by_email(dto.email)
        if not user or not user.is_active or not user.check_password(dto.password):
            logger.warning("user.login_failed")
            raise InvalidCredentials()

        logger.info("user.logged_in", user_id=str(user.id))
        return AuthResultDTO(
            user=UserOutputDTO.from_entity(user),
            tokens=self._issue_tokens(user),
        )

    def update_profile(self, user_id: UUID, dto: UpdateProfileDTO) -> UserOutputDTO:
        """Update profile fields; email and role are immutable.

        Raises:
            UserNotFound: the account does not exist.
        """
        user = self._repo.get_by_id(str(user_id))
        if not user:
            raise UserNotFound()

        for field in ("name", "phone", "address"):
            value = getattr(dto, field)
            if value is not None:
                setattr(user, field, value)

        user = self._repo.save(user)
        log_degraded(
            self._cache.invalidate(profile_cache_key(user_id)),
            user_id=str(user_id),
        )
        logger.info("user.profile_updated", user_id=str(user_id))
        return UserOutputDTO.from_entity(user)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_profile(self, user_id: UUID) -> UserOutputDTO:
        """Return the profile (cached for 5 minutes).

        Raises:
            UserNotFound: the account does not exist.
        """

        def load() -> UserOutputDTO:
            user = self._repo.get_by_id(str(user_id))
            if not user:
                raise UserNotFound()
            return UserOutputDTO.from_entity(user)

        return self._cache.get_or_set(profile_cache_key(user_id), load, PROFILE_CACHE_TTL)
