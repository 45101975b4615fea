"""Unit tests for AuthService with an in-memory repository.

Covers:
- Registration, duplicate emails and role restrictions.
- Login failures are indistinguishable (unknown email, wrong password,
  inactive account).
- Profile reads are cached and profile writes invalidate the cache.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from fakes import InMemoryUserRepository
from modules.users.dtos import (
    AuthTokensDTO,
    LoginDTO,
    RegisterUserDTO,
    UpdateProfileDTO,
)
from modules.users.exceptions import InvalidCredentials, UserAlreadyExists, UserNotFound
from modules.users.services import AuthService, profile_cache_key

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def repository():
    return InMemoryUserRepository()


@pytest.fixture()
def issued():
    return []


@pytest.fixture()
def service(repository, read_cache, issued):
    def token_issuer(user):
        issued.append(user.id)
        return AuthTokensDTO(token=f"access-{user.id}", refresh_token="refresh", expires_in=3600)

    return AuthService(repository, cache=read_cache, token_issuer=token_issuer)


def _register_dto(**overrides) -> RegisterUserDTO:
    data = {"name": "Ana Smith", "email": "Ana@Example.com", "password": "long-enough"}
    data.update(overrides)
    return RegisterUserDTO(**data)


# ---------------------------------------------------------------------------
# DTO validation
# ---------------------------------------------------------------------------


class TestRegisterUserDTO:
    def test_email_is_lowercased_and_role_defaults_to_customer(self):
        dto = _register_dto()
        assert dto.email == "ana@example.com"
        assert dto.role == "customer"

    def test_admin_cannot_self_register(self):
        with pytest.raises(ValidationError, match="cannot be self-registered"):
            _register_dto(role="admin")

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError, match="at least 8"):
            _register_dto(password="short")

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            _register_dto(name="   ")


# ---------------------------------------------------------------------------
# Register / login
# ---------------------------------------------------------------------------


class TestRegister:
    def test_register_returns_user_and_tokens(self, service, repository, issued):
        result = service.register(_register_dto(role="restaurant"))

        assert result.user.email == "ana@example.com"
        assert result.user.role == "restaurant"
        assert result.tokens.token == f"access-{result.user.id}"
        assert issued == [result.user.id]
        stored = repository.get_by_email("ana@example.com")
        assert stored.check_password("long-enough")

    def test_duplicate_email_conflicts(self, service):
        service.register(_register_dto())

        with pytest.raises(UserAlreadyExists) as exc_info:
            service.register(_register_dto(email="ANA@example.com"))
        assert exc_info.value.status_code == 409


class TestLogin:
    def test_valid_credentials(self, service):
        registered = service.register(_register_dto())

        result = service.login(LoginDTO(email="ana@example.com", password="long-enough"))

        assert result.user.id == registered.user.id

    @pytest.mark.parametrize(
        "email,password",
        [("ana@example.com", "wrong-password"), ("nobody@example.com", "long-enough")],
    )
    def test_bad_credentials(self, service, email, password):
        service.register(_register_dto())

        with pytest.raises(InvalidCredentials) as exc_info:
            service.login(LoginDTO(email=email, password=password))
        assert exc_info.value.status_code == 401

    def test_inactive_user_cannot_log_in(self, service, repository):
        service.register(_register_dto())
        repository.get_by_email("ana@example.com").is_active = False

        with pytest.raises(InvalidCredentials):
            service.login(LoginDTO(email="ana@example.com", password="long-enough"))


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


class TestProfile:
    def test_profile_is_cached(self, service, repository, cache_backend):
        user_id = service.register(_register_dto()).user.id

        profile = service.get_profile(user_id)
        repository.users[str(user_id)].name = "Changed Behind The Cache"

        assert cache_backend.store[profile_cache_key(user_id)] == profile
        assert service.get_profile(user_id).name == "Ana Smith"

    def test_update_changes_only_supplied_fields_and_invalidates(self, service, cache_backend):
        user_id = service.register(_register_dto(phone="555-0100")).user.id
        service.get_profile(user_id)

        updated = service.update_profile(user_id, UpdateProfileDTO(address="9 Elm Street"))

        assert updated.address == "9 Elm Street"
        assert updated.phone == "555-0100"
        assert updated.email == "ana@example.com"
        assert profile_cache_key(user_id) not in cache_backend.store
        assert service.get_profile(user_id).address == "9 Elm Street"

    def test_unknown_user(self, service):
        with pytest.raises(UserNotFound):
            service.get_profile(uuid4())
        with pytest.raises(UserNotFound):
            service.update_profile(uuid4(), UpdateProfileDTO(name="x"))
