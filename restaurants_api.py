"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Owner restaurant settings and the public, read-only menu a table's QR code
leads to.
"""

from flask import Blueprint, abort, g

from errors import Conflict
from extensions import db
from guards import owner_required
from logging_config import get_logger
from models import MenuItem, Restaurant
from responses import success
from schemas import UpdateRestaurantRequest, load_json

bp = Blueprint("restaurants_api", __name__, url_prefix="/restaurants")

logger = get_logger(__name__)


# ---------- OWNER ----------
@bp.get("/me")
@owner_required
def my_restaurant():
    return success(g.restaurant.to_dict())


@bp.patch("")
@owner_required
def update_restaurant():
    data = load_json(UpdateRestaurantRequest)
    restaurant = g.restaurant
    if data.slug is not None and data.slug != restaurant.slug:
        taken = Restaurant.query.filter(Restaurant.slug == data.slug, Restaurant.id != restaurant.id).first()
        if taken:
            raise Conflict("Slug already taken")
        restaurant.slug = data.slug
    if data.name is not None:
        restaurant.name = data.name
    if data.is_active is not None:
        restaurant.is_active = data.is_active
    db.session.commit()

    logger.info("Restaurant %s settings updated", restaurant.id)
    return success(restaurant.to_dict(), "Restaurant updated")


# ---------- PUBLIC ----------
@bp.get("/<slug>/menu")
def public_menu(slug):
    restaurant = Restaurant.query.filter_by(slug=slug, is_active=True).first()
    if restaurant is None:
        abort(404, description="Restaurant not found")

    categories = []
    for category in restaurant.categories:
        items = (
            MenuItem.query.filter_by(category_id=category.id, is_available=True).order_by(MenuItem.name).all()
        )
        categories.append(category.to_dict(items=items))
    return success({"restaurant": restaurant.to_dict(), "categories": categories})
