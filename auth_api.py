"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Owner registration and cookie-session login. New owners start pending with an
inactive restaurant until a super-admin approves them.
"""

import re

from flask import Blueprint, abort, session
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db
from guards import current_user, login_required
from logging_config import get_logger
from models import ROLE_OWNER, TIER_FREE, USER_ACTIVE, USER_PENDING, Restaurant, User
from responses import created, success
from schemas import LoginRequest, RegisterRequest, load_json

bp = Blueprint("auth_api", __name__)

logger = get_logger(__name__)


def slugify(name):
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


@bp.post("/auth/register")
def register():
    data = load_json(RegisterRequest)
    email = data.email.lower()
    slug = slugify(data.restaurant_name)
    if not slug:
        abort(400, description="Restaurant name must contain letters or digits")
    if User.query.filter_by(email=email).first():
        abort(400, description="Email already registered")
    if Restaurant.query.filter_by(slug=slug).first():
        abort(400, description="Restaurant name already taken")

    user = User(
        email=email,
        password_hash=generate_password_hash(data.password),
        full_name=data.full_name,
        role=ROLE_OWNER,
        status=USER_PENDING,
        subscription_tier=TIER_FREE,
    )
    db.session.add(user)
    db.session.flush()
    restaurant = Restaurant(owner_id=user.id, name=data.restaurant_name, slug=slug, is_active=False)
    db.session.add(restaurant)
    db.session.commit()

    logger.info("Registered owner %s with restaurant %s", user.id, restaurant.slug)
    return created(
        {"user": user.to_dict(), "restaurant": restaurant.to_dict()},
        "Registration received. Your account is pending approval.",
    )


@bp.post("/auth/login")
def login():
    data = load_json(LoginRequest)
    user = User.query.filter_by(email=data.email.lower()).first()
    if user is None or not check_password_hash(user.password_hash, data.password):
        abort(401, description="Invalid credentials")
    if user.status != USER_ACTIVE:
        logger.info("Login refused for %s user %s", user.status, user.id)
        abort(403, description=f"Account is {user.status}")

    session.clear()
    session["user_id"] = user.id
    session.permanent = True
    return success(user.to_dict(), "Logged in")


@bp.post("/auth/logout")
def logout():
    session.clear()
    return success(None, "Logged out")


@bp.get("/user/me")
@login_required
def me():
    user = current_user()
    data = user.to_dict()
    restaurant = user.restaurant
    data["restaurant"] = restaurant.to_dict() if restaurant else None
    return success(data)
