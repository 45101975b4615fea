from __future__ import annotations

import random
from datetime import time, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.agents.constants import VehicleType
from modules.agents.models import DeliveryAgent
from modules.orders.constants import DEFAULT_DELIVERY_FEE, OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.restaurants.models import MenuItem, Restaurant
from modules.users.constants import UserRole

# Around a fixed city centre so matching finds agents near restaurants.
CENTER_LAT = 40.7128
CENTER_LNG = -74.0060
SEED_PASSWORD = "password123"


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        customers = self._seed_customers()
        restaurants = self._seed_restaurants()
        agents = self._seed_agents()
        orders_created = self._seed_orders(customers, restaurants)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"restaurants={len(restaurants)}, "
                f"agents={len(agents)}, "
                f"orders={orders_created}"
            )
        )

    def _user(self, email: str, name: str, role: str):
        User = get_user_model()
        user = User.objects.filter(email=email).first()
        if user:
            return user
        return User.objects.create_user(email, password=SEED_PASSWORD, name=name, role=role)

    @staticmethod
    def _jitter() -> float:
        return random.uniform(-0.03, 0.03)

    def _seed_customers(self) -> list:
        self.stdout.write("Creating customers...")
        customers = [
            self._user(f"customer{i}@example.com", name, UserRole.CUSTOMER.value)
            for i, name in enumerate(
                ["Ana Smith", "Bruno Lee", "Carla Diaz", "Daniel Kim", "Eva Brown"], start=1
            )
        ]
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_restaurants(self) -> list[Restaurant]:
        self.stdout.write("Creating restaurants...")
        catalog = [
            (
                "Pizza Place",
                "italian",
                [
                    ("Margherita", "Pizzas", Decimal("11.50")),
                    ("Pepperoni", "Pizzas", Decimal("13.00")),
                    ("Tiramisu", "Desserts", Decimal("6.25")),
                ],
            ),
            (
                "Sushi Corner",
                "japanese",
                [
                    ("Salmon Roll", "Rolls", Decimal("9.80")),
                    ("Miso Soup", "Starters", Decimal("3.50")),
                    ("Mochi", "Desserts", Decimal("4.20")),
                ],
            ),
            (
                "Burger Joint",
                "american",
                [
                    ("Classic Burger", "Burgers", Decimal("10.90")),
                    ("Fries", "Sides", Decimal("3.90")),
                    ("Milkshake", "Drinks", Decimal("5.50")),
                ],
            ),
        ]
        restaurants: list[Restaurant] = []
        for index, (name, cuisine, menu) in enumerate(catalog, start=1):
            owner = self._user(f"restaurant{index}@example.com", name, UserRole.RESTAURANT.value)
            restaurant, _ = Restaurant.objects.get_or_create(
                owner=owner,
                defaults={
                    "name": name,
                    "address": f"{index * 100} Main Street",
                    "cuisine_type": cuisine,
                    "is_online": True,
                    "opening_time": time(11, 0),
                    "closing_time": time(23, 0),
                    "latitude": CENTER_LAT + self._jitter(),
                    "longitude": CENTER_LNG + self._jitter(),
                },
            )
            for item_name, category, price in menu:
                MenuItem.objects.get_or_create(
                    restaurant=restaurant,
                    name=item_name,
                    defaults={"category": category, "price": price},
                )
            restaurants.append(restaurant)
        self.stdout.write(self.style.SUCCESS("Creating restaurants... Done!"))
        return restaurants

    def _seed_agents(self) -> list[DeliveryAgent]:
        self.stdout.write("Creating delivery agents...")
        agents: list[DeliveryAgent] = []
        vehicles = [choice.value for choice in VehicleType]
        for index in range(1, 5):
            user = self._user(f"agent{index}@example.com", f"Agent {index}", UserRole.DELIVERY_AGENT.value)
            agent, _ = DeliveryAgent.objects.get_or_create(
                user=user,
                defaults={
                    "vehicle_type": vehicles[index % len(vehicles)],
                    "is_available": True,
                    "current_latitude": CENTER_LAT + self._jitter(),
                    "current_longitude": CENTER_LNG + self._jitter(),
                    "location_updated_at": timezone.now(),
                    "rating": Decimal(random.choice(["3.50", "4.20", "4.80", "5.00"])),
                },
            )
            agents.append(agent)
        self.stdout.write(self.style.SUCCESS("Creating delivery agents... Done!"))
        return agents

    def _seed_orders(self, customers: list, restaurants: list[Restaurant]) -> int:
        """Historical orders in terminal states, so live agents stay idle."""
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        statuses = [OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value, OrderStatus.PENDING.value]
        weights = [0.6, 0.2, 0.2]
        orders_created = 0
        for i in range(30):
            restaurant = random.choice(restaurants)
            menu = list(restaurant.menu_items.all())
            status = random.choices(statuses, weights=weights, k=1)[0]

            order = Order.objects.create(
                user=random.choice(customers),
                restaurant=restaurant,
                status=status,
                delivery_address=f"{i + 1} Seed Avenue",
                delivery_fee=DEFAULT_DELIVERY_FEE,
            )
            total = Decimal("0.00")
            for menu_item in random.sample(menu, k=random.randint(1, len(menu))):
                item = OrderItem.objects.create(
                    order=order,
                    menu_item=menu_item,
                    name=menu_item.name,
                    quantity=random.randint(1, 3),
                    unit_price=menu_item.price,
                )
                total += item.subtotal

            created_at = timezone.now() - timedelta(days=random.randint(0, 30))
            Order.objects.filter(id=order.id).update(
                created_at=created_at,
                total_amount=total + order.delivery_fee,
            )
            OrderStatusHistory.objects.create(order=order, new_status=status, notes="Seeded")
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
