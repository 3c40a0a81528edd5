"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Super-admin platform management: owner approval, restaurant activation,
subscription tiers and the public plan display settings.
"""

import calendar
import re

from flask import Blueprint, abort, jsonify, request

from extensions import db
from guards import super_admin_required
from logging_config import get_logger
from models import (
    PLAN_SETTING_KEYS,
    ROLE_OWNER,
    ROLE_SUPER_ADMIN,
    TIER_FREE,
    TIER_PRO,
    TIERS,
    USER_ACTIVE,
    USER_PENDING,
    USER_REJECTED,
    PlatformSetting,
    Restaurant,
    User,
    utcnow,
)
from responses import success
from schemas import (
    ExtendSubscriptionRequest,
    GrantSubscriptionRequest,
    PlanSettingsUpdate,
    RevokeSubscriptionRequest,
    ToggleRestaurantRequest,
    load_json,
)

bp = Blueprint("admin_api", __name__)

logger = get_logger(__name__)

CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$"}


def add_months(moment, months):
    """Calendar-month addition; the day is clamped to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _subscriber_or_404(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        abort(404, description="User not found")
    return _refuse_super_admin(user)


def _refuse_super_admin(user):
    if user.role == ROLE_SUPER_ADMIN:
        abort(400, description="Cannot change super admin subscription")
    return user


def _set_restaurants_active(user, active):
    for restaurant in user.restaurants:
        restaurant.is_active = active


def _subscription(user):
    return {
        "userId": user.id,
        "email": user.email,
        "subscriptionTier": user.subscription_tier,
        "subscriptionExpiresAt": user.to_dict()["subscriptionExpiresAt"],
    }


def _plan_settings():
    stored = PlatformSetting.as_dict()
    return {key: (stored.get(key) or "") for key in PLAN_SETTING_KEYS}


# ---------- OWNER APPROVAL ----------
@bp.get("/admin/pending-users")
@super_admin_required
def pending_users():
    rows = User.query.filter_by(role=ROLE_OWNER, status=USER_PENDING).order_by(User.created_at.desc()).all()
    data = []
    for user in rows:
        entry = user.to_dict()
        entry["restaurant"] = user.restaurant.to_dict() if user.restaurant else None
        data.append(entry)
    return success(data)


@bp.post("/admin/users/<int:user_id>/approve")
@super_admin_required
def approve_user(user_id):
    user = _subscriber_or_404(user_id)
    user.status = USER_ACTIVE
    _set_restaurants_active(user, True)
    db.session.commit()
    logger.info("Approved owner %s", user.id)
    return success(user.to_dict(), "User approved")


@bp.post("/admin/users/<int:user_id>/reject")
@super_admin_required
def reject_user(user_id):
    user = _subscriber_or_404(user_id)
    user.status = USER_REJECTED
    _set_restaurants_active(user, False)
    db.session.commit()
    logger.info("Rejected owner %s", user.id)
    return success(user.to_dict(), "User rejected")


# ---------- RESTAURANTS ----------
@bp.get("/admin/restaurants")
@super_admin_required
def list_restaurants():
    rows = Restaurant.query.order_by(Restaurant.created_at.desc()).all()
    data = []
    for restaurant in rows:
        entry = restaurant.to_dict()
        entry["ownerEmail"] = restaurant.owner.email
        data.append(entry)
    return success(data)


@bp.patch("/admin/restaurants/<int:restaurant_id>")
@super_admin_required
def toggle_restaurant(restaurant_id):
    restaurant = db.session.get(Restaurant, restaurant_id)
    if restaurant is None:
        abort(404, description="Restaurant not found")
    data = load_json(ToggleRestaurantRequest)
    restaurant.is_active = data.is_active
    db.session.commit()
    logger.info("Restaurant %s active=%s", restaurant.id, restaurant.is_active)
    return success(restaurant.to_dict(), "Restaurant updated")


# ---------- SUBSCRIPTIONS ----------
@bp.get("/admin/subscriptions/users")
@super_admin_required
def subscription_users():
    query = User.query.filter(User.role != ROLE_SUPER_ADMIN)
    tier = request.args.get("tier")
    if tier in TIERS:
        query = query.filter(User.subscription_tier == tier)
    search = (request.args.get("search") or "").strip().lower()
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            db.or_(db.func.lower(User.email).like(pattern), db.func.lower(User.full_name).like(pattern))
        )

    data = []
    for user in query.order_by(User.created_at.desc(), User.id.desc()).all():
        entry = user.to_dict()
        restaurant = user.restaurant if user.role == ROLE_OWNER else None
        entry["restaurantName"] = restaurant.name if restaurant else None
        data.append(entry)
    return success(data)


@bp.post("/admin/subscriptions/grant")
@super_admin_required
def grant_subscription():
    data = load_json(GrantSubscriptionRequest)
    user = User.query.filter(db.func.lower(User.email) == data.email.lower()).first()
    if user is None:
        abort(404, description="User not found")
    _refuse_super_admin(user)

    user.subscription_tier = data.tier
    user.subscription_expires_at = add_months(utcnow(), data.months)
    if user.role == ROLE_OWNER:
        _set_restaurants_active(user, True)
    db.session.commit()

    logger.info("Granted %s to user %s for %s month(s)", data.tier, user.id, data.months)
    return success(_subscription(user), "Subscription granted")


@bp.post("/admin/subscriptions/extend")
@super_admin_required
def extend_subscription():
    data = load_json(ExtendSubscriptionRequest)
    user = _subscriber_or_404(data.user_id)

    now = utcnow()
    base = user.subscription_expires_at
    if base is None or base < now:
        base = now
    user.subscription_expires_at = add_months(base, data.months)
    if user.subscription_tier == TIER_FREE:
        user.subscription_tier = TIER_PRO
    db.session.commit()

    logger.info("Extended subscription of user %s by %s month(s)", user.id, data.months)
    return success(_subscription(user), "Subscription extended")


@bp.post("/admin/subscriptions/revoke")
@super_admin_required
def revoke_subscription():
    data = load_json(RevokeSubscriptionRequest)
    user = _subscriber_or_404(data.user_id)
    user.subscription_tier = TIER_FREE
    user.subscription_expires_at = None
    db.session.commit()

    logger.info("Revoked subscription of user %s", user.id)
    return success(_subscription(user), "Subscription revoked")


@bp.get("/admin/subscriptions/settings")
@super_admin_required
def get_plan_settings():
    return success(_plan_settings())


@bp.patch("/admin/subscriptions/settings")
@super_admin_required
def update_plan_settings():
    data = load_json(PlanSettingsUpdate)
    for key, value in data.model_dump(exclude_none=True).items():
        PlatformSetting.upsert(key, value)
    db.session.commit()
    return success(_plan_settings(), "Settings updated")


# ---------- PUBLIC ----------
def _leading_int(raw):
    match = re.match(r"\s*(-?\d+)", raw or "")
    return int(match.group(1)) if match else None


@bp.get("/subscription-plan")
def subscription_plan():
    settings = _plan_settings()
    price = _leading_int(settings["pro_plan_price"])
    currency = settings["pro_plan_currency"].upper()
    interval = settings["pro_plan_interval"].lower()
    if price is None or not currency or not interval:
        # not configured yet: clients hide the upgrade prompt
        return jsonify({"success": False, "data": None})

    suffix = "/month" if interval == "month" else "/year"
    return success(
        {
            "name": settings["pro_plan_name"].strip(),
            "price": price,
            "currency": currency,
            "interval": interval,
            "displayPrice": f"{CURRENCY_SYMBOLS.get(currency, '')}{price}{suffix}",
        }
    )
