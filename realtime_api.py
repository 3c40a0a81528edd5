"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Polling fallback for real-time updates: snapshots of a restaurant's recent
orders and open sessions, with the interval clients should poll at.
"""

from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, abort, current_app, g, request
from sqlalchemy import and_, or_

from guards import owner_required
from models import PAYMENT_COUNTER, PAYMENT_PENDING, SESSION_ACTIVE, Order, TableSession
from responses import success

bp = Blueprint("realtime_api", __name__, url_prefix="/realtime")

RECENT_ORDERS_LIMIT = 100


def restaurant_param_required(f):
    """Require ?restaurantId= and that it names the caller's own restaurant."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        restaurant_id = request.args.get("restaurantId", type=int)
        if not restaurant_id:
            abort(400, description="restaurantId is required")
        if restaurant_id != g.restaurant.id:
            abort(403, description="Forbidden")
        return f(*args, **kwargs)

    return decorated_function


def _snapshot(data):
    return success(
        data,
        timestamp=datetime.now(timezone.utc).isoformat(),
        pollInterval=current_app.config["POLL_INTERVAL_SECONDS"],
    )


@bp.get("/orders")
@owner_required
@restaurant_param_required
def poll_orders():
    rows = (
        Order.query.filter_by(restaurant_id=g.restaurant.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_ORDERS_LIMIT)
        .all()
    )
    return _snapshot([o.to_dict() for o in rows])


@bp.get("/sessions")
@owner_required
@restaurant_param_required
def poll_sessions():
    rows = (
        TableSession.query.filter(
            TableSession.restaurant_id == g.restaurant.id,
            or_(
                TableSession.status == SESSION_ACTIVE,
                and_(
                    TableSession.payment_method == PAYMENT_COUNTER,
                    TableSession.payment_status == PAYMENT_PENDING,
                ),
            ),
        )
        .order_by(TableSession.started_at.desc())
        .all()
    )
    data = []
    for table_session in rows:
        entry = table_session.to_owner_dict()
        entry["ordersCount"] = len(table_session.orders)
        data.append(entry)
    return _snapshot(data)
