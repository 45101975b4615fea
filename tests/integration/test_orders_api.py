"""
Integration tests for the order API.

Covers placement, the restaurant workflow (accept / reject / status),
cancellation, assignment and the per-role read endpoints.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.models import Order, OrderStatusHistory

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _url(order, action: str = "") -> str:
    return f"{ORDERS_URL}{order.id}/{action + '/' if action else ''}"


@pytest.fixture()
def payload(restaurant, menu_item, menu_item_b):
    return {
        "restaurant_id": str(restaurant.id),
        "items": [
            {"menu_item_id": str(menu_item.id), "quantity": 2},
            {"menu_item_id": str(menu_item_b.id), "quantity": 1},
        ],
        "delivery_address": "42 Main Street",
    }


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


class TestPlaceOrder:
    def test_customer_places_order(self, customer_client, customer, payload):
        response = customer_client.post(ORDERS_URL, payload, format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Order placed successfully."
        assert body["data"]["status"] == "pending"
        assert Decimal(body["data"]["total_amount"]) == Decimal("28.49")
        assert Decimal(body["data"]["delivery_fee"]) == Decimal("2.99")
        assert body["data"]["user_id"] == str(customer.id)
        assert len(body["data"]["items"]) == 2
        assert OrderStatusHistory.objects.filter(order_id=body["data"]["id"]).count() == 1

    def test_restaurant_cannot_place_orders(self, restaurant_client, payload):
        response = restaurant_client.post(ORDERS_URL, payload, format="json")

        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_anonymous_cannot_place_orders(self, api_client, payload):
        assert api_client.post(ORDERS_URL, payload, format="json").status_code == 401

    def test_empty_items(self, customer_client, payload):
        payload["items"] = []

        response = customer_client.post(ORDERS_URL, payload, format="json")

        assert response.status_code == 400
        assert "items" in response.json()["details"]

    def test_duplicate_items(self, customer_client, payload):
        payload["items"].append(dict(payload["items"][0]))

        response = customer_client.post(ORDERS_URL, payload, format="json")

        assert response.status_code == 400
        assert not Order.objects.exists()

    def test_offline_restaurant(self, customer_client, payload, restaurant):
        restaurant.is_online = False
        restaurant.save(update_fields=["is_online"])

        response = customer_client.post(ORDERS_URL, payload, format="json")

        assert response.status_code == 400
        assert response.json()["error"] == "Restaurant is not accepting orders right now."

    def test_unavailable_item_lists_ids(self, customer_client, payload, menu_item_b):
        menu_item_b.is_available = False
        menu_item_b.save(update_fields=["is_available"])

        response = customer_client.post(ORDERS_URL, payload, format="json")

        assert response.status_code == 400
        assert response.json()["details"] == {"menu_item_ids": [str(menu_item_b.id)]}


# ---------------------------------------------------------------------------
# Restaurant workflow
# ---------------------------------------------------------------------------


class TestRestaurantWorkflow:
    def test_accept_then_accept_again(self, restaurant_client, make_order):
        order = make_order()

        first = restaurant_client.put(_url(order, "accept"))
        second = restaurant_client.put(_url(order, "accept"))

        assert first.status_code == 200
        assert first.json()["data"]["status"] == "confirmed"
        assert first.json()["data"]["confirmed_at"] is not None
        assert second.status_code == 400
        assert "confirmed" in second.json()["error"]

    def test_status_update(self, restaurant_client, make_order):
        order = make_order(status="confirmed")

        response = restaurant_client.put(
            _url(order, "status"), {"status": "preparing", "notes": "On it"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "preparing"

    def test_unknown_status_value(self, restaurant_client, make_order):
        response = restaurant_client.put(
            _url(make_order(), "status"), {"status": "teleported"}, format="json"
        )

        assert response.status_code == 400
        assert "status" in response.json()["details"]

    def test_illegal_jump(self, restaurant_client, make_order):
        response = restaurant_client.put(
            _url(make_order(), "status"), {"status": "delivered"}, format="json"
        )

        assert response.status_code == 400

    def test_reject_with_reason(self, restaurant_client, make_order):
        order = make_order()

        response = restaurant_client.put(_url(order, "reject"), {"reason": "Closed"}, format="json")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rejected"
        assert response.json()["data"]["rejection_reason"] == "Closed"

    def test_customer_cannot_accept(self, customer_client, make_order):
        assert customer_client.put(_url(make_order(), "accept")).status_code == 403

    def test_pending_and_stats(self, restaurant_client, make_order):
        pending = make_order()
        make_order(status="delivered")

        queue = restaurant_client.get(f"{ORDERS_URL}pending/")
        stats = restaurant_client.get(f"{ORDERS_URL}stats/")

        assert [o["id"] for o in queue.json()["data"]] == [str(pending.id)]
        data = stats.json()["data"]
        assert data["total_orders"] == 2
        assert Decimal(data["total_revenue"]) == Decimal("45.98")
        assert data["status_breakdown"]["delivered"] == 1


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancel:
    def test_customer_cancels(self, customer_client, make_order):
        order = make_order()

        response = customer_client.put(_url(order, "cancel"), {"reason": "Too slow"}, format="json")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

    def test_other_customer_gets_404(self, client_for, other_customer, make_order):
        response = client_for(other_customer).put(_url(make_order(), "cancel"))

        assert response.status_code == 404

    def test_agent_cannot_cancel(self, agent_client, make_order):
        assert agent_client.put(_url(make_order(), "cancel")).status_code == 403

    def test_cancel_after_pickup_is_refused(self, customer_client, make_order, agent):
        order = make_order(status="out_for_delivery", agent=agent, delivery_status="picked_up")

        response = customer_client.put(_url(order, "cancel"))

        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


class TestAssign:
    def test_explicit_agent(self, restaurant_client, make_order, agent):
        order = make_order(status="confirmed")

        response = restaurant_client.post(
            _url(order, "assign"), {"agent_id": str(agent.id)}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["data"]["delivery_agent_id"] == str(agent.id)
        assert response.json()["data"]["delivery_status"] == "assigned"

    def test_auto_match(self, restaurant_client, make_order, agent):
        order = make_order(status="preparing")

        response = restaurant_client.post(_url(order, "assign"), {}, format="json")

        assert response.status_code == 200
        assert response.json()["data"]["delivery_agent_id"] == str(agent.id)

    def test_second_assignment_conflicts(self, restaurant_client, make_order, agent, make_agent):
        order = make_order(status="confirmed")
        restaurant_client.post(_url(order, "assign"), {"agent_id": str(agent.id)}, format="json")

        response = restaurant_client.post(
            _url(order, "assign"), {"agent_id": str(make_agent().id)}, format="json"
        )

        assert response.status_code == 409

    def test_no_agent_nearby(self, restaurant_client, make_order):
        order = make_order(status="confirmed")

        response = restaurant_client.post(_url(order, "assign"), {}, format="json")

        assert response.status_code == 404
        assert response.json()["error"] == "No delivery agent available near the pickup point."


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    def test_customer_sees_only_own_orders(self, customer_client, make_order, other_customer):
        mine = make_order()
        make_order(user=other_customer)

        response = customer_client.get(ORDERS_URL)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["data"]] == [str(mine.id)]

    def test_detail_visibility(
        self, customer_client, client_for, other_customer, restaurant_client, make_order
    ):
        order = make_order()

        assert customer_client.get(_url(order)).status_code == 200
        assert restaurant_client.get(_url(order)).status_code == 200
        assert client_for(other_customer).get(_url(order)).status_code == 404

    def test_agent_cannot_list(self, agent_client):
        assert agent_client.get(ORDERS_URL).status_code == 403
