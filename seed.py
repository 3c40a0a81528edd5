"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Seed a development database: a super-admin, one approved owner with a demo
restaurant, its menu, and the Pro plan display settings.
"""

from decimal import Decimal

from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import (
    ROLE_OWNER,
    ROLE_SUPER_ADMIN,
    TIER_PRO,
    USER_ACTIVE,
    Category,
    MenuItem,
    PlatformSetting,
    Restaurant,
    User,
)

ADMIN_EMAIL = "admin@menumate.local"
OWNER_EMAIL = "owner@menumate.local"
PASSWORD = "password"

DEMO_MENU = {
    "Starters": [("Paneer Tikka", "180.00"), ("Veg Spring Rolls", "140.00")],
    "Mains": [("Butter Chicken", "320.00"), ("Dal Makhani", "220.00"), ("Jeera Rice", "120.00")],
    "Drinks": [("Masala Chai", "40.00"), ("Fresh Lime Soda", "60.00")],
}

PLAN_SETTINGS = {
    "pro_plan_name": "MenuMate Pro",
    "pro_plan_price": "999",
    "pro_plan_currency": "INR",
    "pro_plan_interval": "month",
}


def _user(email, full_name, role, **extra):
    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(
            email=email,
            password_hash=generate_password_hash(PASSWORD),
            full_name=full_name,
            role=role,
            status=USER_ACTIVE,
            **extra,
        )
        db.session.add(user)
        db.session.flush()
    return user


def seed():
    _user(ADMIN_EMAIL, "Platform Admin", ROLE_SUPER_ADMIN)
    owner = _user(OWNER_EMAIL, "Demo Owner", ROLE_OWNER, subscription_tier=TIER_PRO)

    restaurant = Restaurant.query.filter_by(slug="demo-bistro").first()
    if restaurant is None:
        restaurant = Restaurant(owner_id=owner.id, name="Demo Bistro", slug="demo-bistro", is_active=True)
        db.session.add(restaurant)
        db.session.flush()

    if Category.query.filter_by(restaurant_id=restaurant.id).count() == 0:
        for category_name, items in DEMO_MENU.items():
            category = Category(
                restaurant_id=restaurant.id,
                name=category_name,
                sort_order=Category.next_sort_order(restaurant.id),
            )
            db.session.add(category)
            db.session.flush()
            for item_name, price in items:
                db.session.add(
                    MenuItem(
                        category_id=category.id,
                        restaurant_id=restaurant.id,
                        name=item_name,
                        price=Decimal(price),
                    )
                )

    for key, value in PLAN_SETTINGS.items():
        if db.session.get(PlatformSetting, key) is None:
            PlatformSetting.upsert(key, value)

    db.session.commit()
    return restaurant


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
        restaurant = seed()
        print(f"Seeded. Owner={OWNER_EMAIL} Admin={ADMIN_EMAIL} Password={PASSWORD}")
        print(f"Menu: /r/{restaurant.slug}?table=1")
