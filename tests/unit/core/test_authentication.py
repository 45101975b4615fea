"""Unit tests for stateless JWT authentication and role permissions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt as pyjwt
import pytest
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.test import APIRequestFactory

from modules.core.authentication import AuthenticatedUser, ClaimsJWTAuthentication
from modules.core.permissions import IsCustomer, IsCustomerOrRestaurant, IsDeliveryAgent
from modules.users.tokens import issue_tokens

pytestmark = pytest.mark.unit

factory = APIRequestFactory()


def _request(header: str | None = None):
    extra = {"HTTP_AUTHORIZATION": header} if header is not None else {}
    return factory.get("/api/v1/orders/", **extra)


def _encode(**claims) -> str:
    jwt_settings = settings.SIMPLE_JWT
    return pyjwt.encode(claims, jwt_settings["SIGNING_KEY"], algorithm=jwt_settings["ALGORITHM"])


# ---------------------------------------------------------------------------
# ClaimsJWTAuthentication
# ---------------------------------------------------------------------------


class TestClaimsJWTAuthentication:
    def test_no_header_means_anonymous(self):
        assert ClaimsJWTAuthentication().authenticate(_request()) is None

    def test_issued_access_token_authenticates_without_db_lookup(self, customer):
        token = issue_tokens(customer).token

        user, raw = ClaimsJWTAuthentication().authenticate(_request(f"Bearer {token}"))

        assert raw == token
        assert user == AuthenticatedUser(user_id=customer.id, email=customer.email, role="customer")
        assert user.is_authenticated
        assert user.pk == customer.id

    def test_refresh_token_is_rejected(self, customer):
        refresh = issue_tokens(customer).refresh_token

        with pytest.raises(AuthenticationFailed):
            ClaimsJWTAuthentication().authenticate(_request(f"Bearer {refresh}"))

    def test_expired_token_is_rejected(self):
        token = _encode(
            token_type="access",
            user_id=str(uuid4()),
            role="customer",
            exp=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        with pytest.raises(AuthenticationFailed):
            ClaimsJWTAuthentication().authenticate(_request(f"Bearer {token}"))

    def test_token_signed_with_another_key_is_rejected(self):
        token = pyjwt.encode(
            {
                "token_type": "access",
                "user_id": str(uuid4()),
                "role": "admin",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            "not-the-signing-key-but-long-enough-for-hs256",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationFailed):
            ClaimsJWTAuthentication().authenticate(_request(f"Bearer {token}"))

    def test_missing_role_claim_is_rejected(self):
        token = _encode(
            token_type="access",
            user_id=str(uuid4()),
            exp=datetime.now(timezone.utc) + timedelta(minutes=5),
        )
        with pytest.raises(AuthenticationFailed):
            ClaimsJWTAuthentication().authenticate(_request(f"Bearer {token}"))

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b"])
    def test_malformed_header(self, header):
        with pytest.raises(AuthenticationFailed, match="Authorization header"):
            ClaimsJWTAuthentication().authenticate(_request(header))


# ---------------------------------------------------------------------------
# Role permissions
# ---------------------------------------------------------------------------


class TestRolePermissions:
    def _with_user(self, role):
        request = _request()
        request.user = AuthenticatedUser(user_id=uuid4(), email="x@example.com", role=role)
        return request

    def test_role_must_match(self):
        assert IsCustomer().has_permission(self._with_user("customer"), None)
        assert not IsCustomer().has_permission(self._with_user("restaurant"), None)
        assert IsDeliveryAgent().has_permission(self._with_user("delivery_agent"), None)

    def test_customer_or_restaurant(self):
        permission = IsCustomerOrRestaurant()
        assert permission.has_permission(self._with_user("customer"), None)
        assert permission.has_permission(self._with_user("restaurant"), None)
        assert not permission.has_permission(self._with_user("delivery_agent"), None)
