from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from authentication.models import User
from authentication.serializers import issue_tokens_for_user
from orders import services as order_services
from products.models import Product

CRON_SECRET = "test-cron-secret"

PUNE_ADDRESS = {
    "street": "12 MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
}


@pytest.fixture(autouse=True)
def storefront_settings(settings):
    settings.RATELIMIT_ENABLE = False
    settings.CRON_SECRET = CRON_SECRET
    settings.ORDER_AUTO_CANCEL_HOURS = 24
    return settings


@pytest.fixture
def customer(db):
    return User.objects.create_user("alice", "alice@example.com", "s3cret-pass", name="Alice")


@pytest.fixture
def other_customer(db):
    return User.objects.create_user("bob", "bob@example.com", "s3cret-pass", name="Bob")


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        "admin", "admin@example.com", "s3cret-pass", name="Admin", role=User.Role.ADMIN,
    )


@pytest.fixture
def product(db):
    return Product.objects.create(
        name="Rose Glow Serum",
        slug="rose-glow-serum",
        price=Decimal("299.00"),
        images=["https://cdn.example.com/rose-serum.jpg"],
        stock=25,
    )


@pytest.fixture
def second_product(db):
    return Product.objects.create(
        name="Matte Lipstick",
        slug="matte-lipstick",
        price=Decimal("149.50"),
        stock=40,
    )


def token_for(user):
    return issue_tokens_for_user(user)["access"]


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer_client(customer):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_for(customer)}")
    return client


@pytest.fixture
def other_client(other_customer):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_for(other_customer)}")
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_for(admin_user)}")
    return client


@pytest.fixture
def guest_order(product):
    return order_services.create_order(
        user=None,
        items=[{"product": product.pk, "quantity": 2}],
        total_amount=Decimal("598.00"),
        delivery_address=dict(PUNE_ADDRESS),
        guest_info={"name": "Asha Patil", "phone": "9876543210"},
    )


@pytest.fixture
def member_order(customer, product):
    return order_services.create_order(
        user=customer,
        items=[{"product": product.pk, "quantity": 1}],
        total_amount=Decimal("299.00"),
        delivery_address=dict(PUNE_ADDRESS),
    )
