import json
import os
from datetime import UTC, datetime, timedelta

import pytest


@pytest.fixture(scope="session")
def _tracking_domain(request):
    """Initialize the tracking domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from tracking.domain import tracking

    tracking.init()
    return tracking


@pytest.fixture(scope="session", autouse=True)
def setup_db(_tracking_domain):
    from tracking.utils.db import drop_db, setup_db

    setup_db(_tracking_domain)

    yield

    drop_db(_tracking_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_tracking_domain):
    """Push domain context before each test, cleanup after."""
    from tracking.notification import reset_notifier

    reset_notifier()
    ctx = _tracking_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()
    reset_notifier()


@pytest.fixture()
def notifier():
    from tracking.notification import get_notifier

    return get_notifier()


def _customer_data(email="ada@example.com", name="Ada Lovelace", city="London"):
    return {"name": name, "email": email, "street": "12 St James's Sq", "city": city, "country": "UK"}


def _items_data():
    return [
        {"product_id": "prod-kb", "name": "Mechanical Keyboard", "price": 120.0, "quantity": 1},
        {"product_id": "prod-mp", "name": "Mouse Pad", "price": 15.5, "quantity": 2},
    ]


def _place_order(email="ada@example.com", estimated_delivery=None, is_urgent=False, notifications_enabled=True):
    from protean import current_domain

    from tracking.order.placement import PlaceOrder

    return current_domain.process(
        PlaceOrder(
            customer=json.dumps(_customer_data(email=email)),
            items=json.dumps(_items_data()),
            estimated_delivery=estimated_delivery,
            is_urgent=is_urgent,
            shipping_cost=5.0,
            notifications_enabled=notifications_enabled,
        ),
        asynchronous=False,
    )


@pytest.fixture()
def place_order():
    """Factory placing an order through the intake command; returns the order number."""
    return _place_order


@pytest.fixture()
def order_payload():
    """Request body for ``POST /orders``."""
    return {"customer": _customer_data(), "items": _items_data(), "shipping_cost": 5.0}


@pytest.fixture()
def in_days():
    def _in_days(days: float) -> datetime:
        return datetime.now(UTC) + timedelta(days=days)

    return _in_days
