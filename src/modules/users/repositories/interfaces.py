"""User repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.users.dtos import RegisterUserDTO
    from modules.users.models import User


class IUserRepository(IRepository["User"]):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by (lower-cased) email."""

    @abstractmethod
    def create(self, dto: RegisterUserDTO) -> User:
        """Create a user with a hashed password."""
