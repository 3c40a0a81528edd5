"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Shared fixtures: a fresh in-memory app per test, a seeded restaurant with a
small menu, logged-in owner / super-admin clients and a notifier that records
every event instead of pushing it.
"""

import hashlib
import hmac
import os
import sys
from decimal import Decimal
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app import create_app  # noqa: E402
from extensions import db  # noqa: E402
from models import (  # noqa: E402
    ROLE_OWNER,
    ROLE_SUPER_ADMIN,
    USER_ACTIVE,
    Category,
    MenuItem,
    Restaurant,
    User,
)
from notifier import Notifier  # noqa: E402

PASSWORD = "password"


class RecordingNotifier(Notifier):
    mode = "record"

    def __init__(self):
        self.events = []

    def publish(self, channel, event, payload):
        self.events.append((channel, event, payload))

    def names(self):
        return [event for _, event, _ in self.events]


@pytest.fixture
def app():
    app = create_app(testing=True)
    with app.app_context():
        db.drop_all()
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _owner_with_restaurant(email, name, slug):
    owner = User(
        email=email,
        password_hash=generate_password_hash(PASSWORD),
        full_name=name,
        role=ROLE_OWNER,
        status=USER_ACTIVE,
    )
    db.session.add(owner)
    db.session.flush()
    restaurant = Restaurant(owner_id=owner.id, name=name, slug=slug, is_active=True)
    db.session.add(restaurant)
    db.session.flush()
    return owner, restaurant


def _item(restaurant, category, name, price, available=True):
    item = MenuItem(
        category_id=category.id,
        restaurant_id=restaurant.id,
        name=name,
        price=Decimal(price),
        is_available=available,
    )
    db.session.add(item)
    db.session.flush()
    return item


@pytest.fixture
def seeded(app):
    """Two restaurants: the owner's own, with a menu, and a rival one."""
    with app.app_context():
        admin = User(
            email="admin@example.com",
            password_hash=generate_password_hash(PASSWORD),
            full_name="Platform Admin",
            role=ROLE_SUPER_ADMIN,
            status=USER_ACTIVE,
        )
        db.session.add(admin)

        owner, restaurant = _owner_with_restaurant("owner@example.com", "Spice Route", "spice-route")
        mains = Category(restaurant_id=restaurant.id, name="Mains", sort_order=0)
        db.session.add(mains)
        db.session.flush()
        burger = _item(restaurant, mains, "Burger", "100.00")
        fries = _item(restaurant, mains, "Fries", "50.00")
        sold_out = _item(restaurant, mains, "Lobster", "900.00", available=False)

        rival_owner, rival = _owner_with_restaurant("rival@example.com", "Rival Diner", "rival-diner")
        rival_menu = Category(restaurant_id=rival.id, name="Menu", sort_order=0)
        db.session.add(rival_menu)
        db.session.flush()
        rival_item = _item(rival, rival_menu, "Rival Pizza", "300.00")
        db.session.commit()

        return SimpleNamespace(
            admin_id=admin.id,
            owner_id=owner.id,
            restaurant_id=restaurant.id,
            slug=restaurant.slug,
            burger_id=burger.id,
            fries_id=fries.id,
            sold_out_id=sold_out.id,
            rival_owner_id=rival_owner.id,
            rival_restaurant_id=rival.id,
            rival_slug=rival.slug,
            rival_item_id=rival_item.id,
        )


def login(client, email, password=PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


@pytest.fixture
def owner_client(app, seeded):
    c = app.test_client()
    assert login(c, "owner@example.com").status_code == 200
    return c


@pytest.fixture
def rival_client(app, seeded):
    c = app.test_client()
    assert login(c, "rival@example.com").status_code == 200
    return c


@pytest.fixture
def admin_client(app, seeded):
    c = app.test_client()
    assert login(c, "admin@example.com").status_code == 200
    return c


@pytest.fixture
def notifications(app):
    recorder = RecordingNotifier()
    app.extensions["notifier"] = recorder
    return recorder


# ---------- helpers ----------
def open_table(client, slug="spice-route", table="5"):
    resp = client.post("/sessions/create", json={"restaurantSlug": slug, "tableNumber": table})
    assert resp.status_code in (200, 201), resp.get_json()
    return resp.get_json()["data"]


def add_order(client, token, lines, name="Asha", phone="9876543210"):
    return client.post(
        "/orders/create",
        json={
            "sessionToken": token,
            "items": [{"itemId": item_id, "quantity": qty} for item_id, qty in lines],
            "customerName": name,
            "customerPhone": phone,
        },
    )


def sign(message, secret="rzp_test_secret"):
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def payment_proof(order_id="order_abc", payment_id="pay_xyz", signature=None):
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature if signature is not None else sign(f"{order_id}|{payment_id}"),
    }
