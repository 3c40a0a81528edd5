"""Route guards for authentication, role and restaurant ownership."""

from functools import wraps

from flask import abort, g, session

from extensions import db
from models import USER_ACTIVE, User


def current_user():
    """The logged-in, approved user or None."""
    if "user" in g:
        return g.user
    user = None
    user_id = session.get("user_id")
    if user_id is not None:
        user = db.session.get(User, user_id)
        if user is not None and user.status != USER_ACTIVE:
            user = None
    g.user = user
    return user


def login_required(f):
    """Decorator to require a logged-in user."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user() is None:
            abort(401, description="Unauthorized")
        return f(*args, **kwargs)

    return decorated_function


def super_admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None or not user.is_super_admin:
            abort(403, description="Forbidden")
        return f(*args, **kwargs)

    return decorated_function


def owner_required(f):
    """
    Decorator for restaurant-owner endpoints.

    Loads the caller's restaurant into ``g.restaurant``. Super-admins manage
    the platform, not a restaurant, and are refused.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            abort(401, description="Unauthorized")
        if user.is_super_admin:
            abort(403, description="Super admins cannot manage restaurant data")
        restaurant = user.restaurant
        if restaurant is None:
            abort(404, description="Restaurant not found")
        g.restaurant = restaurant
        return f(*args, **kwargs)

    return decorated_function


def ensure_same_restaurant(row, message="Resource does not belong to your restaurant"):
    """Compare a tenant-scoped row against the restaurant loaded by owner_required."""
    if row.restaurant_id != g.restaurant.id:
        abort(403, description=message)
    return row
