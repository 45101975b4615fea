from __future__ import annotations

from decimal import Decimal
from typing import Optional

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from fakes import DictCacheBackend, RecordingPublisher
from modules.agents.constants import VehicleType
from modules.agents.models import DeliveryAgent
from modules.core.authentication import AuthenticatedUser
from modules.orders.constants import DEFAULT_DELIVERY_FEE, OrderStatus
from modules.orders.models import Order, OrderItem
from modules.restaurants.models import MenuItem, Restaurant
from modules.users.constants import UserRole
from modules.users.models import User
from modules.users.tokens import issue_tokens
from shared.infrastructure.cache import ReadThroughCache

PASSWORD = "s3cure-pass"

# Pickup point used by the matching fixtures (Manhattan).
PICKUP_LAT = 40.7128
PICKUP_LNG = -74.0060


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Side-effect doubles
# ---------------------------------------------------------------------------


@pytest.fixture()
def publisher():
    return RecordingPublisher()


@pytest.fixture()
def cache_backend():
    return DictCacheBackend()


@pytest.fixture()
def read_cache(cache_backend):
    return ReadThroughCache(backend=cache_backend)


# ---------------------------------------------------------------------------
# Users and authentication
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    counter = {"n": 0}

    def _make(role: str = UserRole.CUSTOMER.value, email: Optional[str] = None, **extra) -> User:
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@example.com"
        return User.objects.create_user(
            email,
            password=PASSWORD,
            name=extra.pop("name", f"Test {role} {counter['n']}"),
            role=role,
            **extra,
        )

    return _make


def _actor_for(user: User) -> AuthenticatedUser:
    return AuthenticatedUser(user_id=user.id, email=user.email, role=user.role)


def _client_for(user: User) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_tokens(user).token}")
    return client


@pytest.fixture()
def actor_for():
    """Principal for a saved user, as the JWT authentication would build it."""
    return _actor_for


@pytest.fixture()
def client_for():
    """APIClient carrying a real access token for the given user."""
    return _client_for


@pytest.fixture()
def customer(make_user):
    return make_user(UserRole.CUSTOMER.value, email="customer@example.com")


@pytest.fixture()
def other_customer(make_user):
    return make_user(UserRole.CUSTOMER.value, email="other-customer@example.com")


@pytest.fixture()
def restaurant_user(make_user):
    return make_user(UserRole.RESTAURANT.value, email="owner@example.com")


@pytest.fixture()
def agent_user(make_user):
    return make_user(UserRole.DELIVERY_AGENT.value, email="rider@example.com")


@pytest.fixture()
def customer_client(customer):
    return _client_for(customer)


@pytest.fixture()
def restaurant_client(restaurant_user):
    return _client_for(restaurant_user)


@pytest.fixture()
def agent_client(agent_user):
    return _client_for(agent_user)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def restaurant(restaurant_user):
    return Restaurant.objects.create(
        owner=restaurant_user,
        name="Luigi's",
        address="1 Pizza Street",
        cuisine_type="italian",
        is_online=True,
        latitude=PICKUP_LAT,
        longitude=PICKUP_LNG,
    )


@pytest.fixture()
def menu_item(restaurant):
    return MenuItem.objects.create(
        restaurant=restaurant,
        name="Margherita",
        category="Pizzas",
        price=Decimal("10.00"),
    )


@pytest.fixture()
def menu_item_b(restaurant):
    return MenuItem.objects.create(
        restaurant=restaurant,
        name="Tiramisu",
        category="Desserts",
        price=Decimal("5.50"),
    )


# ---------------------------------------------------------------------------
# Agents and orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_agent(make_user):
    def _make(
        user: Optional[User] = None,
        latitude: Optional[float] = PICKUP_LAT + 0.005,
        longitude: Optional[float] = PICKUP_LNG,
        rating: str = "4.50",
        **extra,
    ) -> DeliveryAgent:
        user = user or make_user(UserRole.DELIVERY_AGENT.value)
        extra.setdefault("is_available", True)
        return DeliveryAgent.objects.create(
            user=user,
            vehicle_type=VehicleType.MOTORCYCLE.value,
            current_latitude=latitude,
            current_longitude=longitude,
            rating=Decimal(rating),
            **extra,
        )

    return _make


@pytest.fixture()
def agent(make_agent, agent_user):
    return make_agent(user=agent_user)


@pytest.fixture()
def make_order(customer, restaurant, menu_item):
    """Insert an order directly in any state (bypasses the service)."""

    def _make(
        status: str = OrderStatus.PENDING.value,
        user: Optional[User] = None,
        agent: Optional[DeliveryAgent] = None,
        delivery_status: Optional[str] = None,
        quantity: int = 2,
    ) -> Order:
        order = Order.objects.create(
            user=user or customer,
            restaurant=restaurant,
            status=status,
            delivery_agent=agent,
            delivery_status=delivery_status,
            delivery_address="42 Main Street",
            delivery_fee=DEFAULT_DELIVERY_FEE,
        )
        item = OrderItem.objects.create(
            order=order,
            menu_item=menu_item,
            name=menu_item.name,
            quantity=quantity,
            unit_price=menu_item.price,
        )
        order.total_amount = item.subtotal + order.delivery_fee
        order.save(update_fields=["total_amount"])
        return order

    return _make
