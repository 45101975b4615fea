"""Django ORM implementation of the User repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.users.dtos import RegisterUserDTO
from modules.users.models import User
from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    def get_by_id(self, id: str) -> Optional[User]:
        try:
            return User.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def get_by_email(self, email: str) -> Optional[User]:
        return User.objects.filter(email=email.lower()).first()

    @transaction.atomic
    def create(self, dto: RegisterUserDTO) -> User:
        user = User.objects.create_user(
            email=dto.email,
            password=dto.password,
            name=dto.name,
            phone=dto.phone,
            address=dto.address,
            role=dto.role,
        )
        logger.info("user.created", user_id=str(user.id), role=user.role)
        return user

    @transaction.atomic
    def save(self, entity: User) -> User:
        entity.save()
        logger.info("user.saved", user_id=str(entity.id))
        return entity
