"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Order endpoints. Customers add orders to their table session (or place a
session-less order by restaurant slug); owners list orders and move them
through the kitchen statuses.
"""

from flask import Blueprint, abort, g, request

from errors import Conflict
from extensions import db
from guards import owner_required
from logging_config import get_logger, token_preview
from models import ORDER_STATUSES, SESSION_ACTIVE, Order, Restaurant, money
from notifier import get_notifier
from order_intake import price_cart
from responses import created, success
from schemas import CreateOrderRequest, PlaceOrderRequest, UpdateOrderStatusRequest, load_json
from session_lifecycle import expire_if_idle, find_by_token, refresh_total

bp = Blueprint("orders_api", __name__, url_prefix="/orders")

logger = get_logger(__name__)


def _new_order(restaurant_id, data, snapshot, total, table_number, session_id=None):
    return Order(
        restaurant_id=restaurant_id,
        session_id=session_id,
        table_number=table_number,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        items=snapshot,
        total_amount=total,
        status="pending",
        is_paid=False,
        notes=data.notes,
    )


# ---------- CUSTOMER ----------
@bp.post("/create")
def create_order():
    data = load_json(CreateOrderRequest)
    table_session = find_by_token(data.session_token)
    if table_session is None:
        raise Conflict("Invalid or closed session")
    if expire_if_idle(table_session):
        raise Conflict("Session expired after inactivity. Please start a new session.")
    if table_session.status != SESSION_ACTIVE:
        raise Conflict("Invalid or closed session")

    snapshot, total = price_cart(table_session.restaurant_id, data.items)

    if not table_session.customer_name:
        table_session.customer_name = data.customer_name
    if not table_session.customer_phone:
        table_session.customer_phone = data.customer_phone

    order = _new_order(
        table_session.restaurant_id,
        data,
        snapshot,
        total,
        table_session.table_number,
        session_id=table_session.id,
    )
    db.session.add(order)
    db.session.flush()
    refresh_total(table_session)
    db.session.commit()

    logger.info(
        "Order %s added to session %s (%s)",
        order.id,
        token_preview(table_session.session_token),
        money(total),
    )
    notifier = get_notifier()
    notifier.order_created(order, table_session)
    notifier.session_updated(table_session)
    return created(order.to_dict(), "Order created successfully")


@bp.post("/place")
def place_order():
    data = load_json(PlaceOrderRequest)
    restaurant = Restaurant.query.filter_by(slug=data.restaurant_slug, is_active=True).first()
    if restaurant is None:
        abort(404, description="Restaurant not found or inactive")

    snapshot, total = price_cart(restaurant.id, data.items)
    order = _new_order(restaurant.id, data, snapshot, total, data.table_number)
    db.session.add(order)
    db.session.commit()

    logger.info("Order %s placed for restaurant %s", order.id, restaurant.id)
    get_notifier().order_created(order)
    return created(
        {
            "id": order.id,
            "orderNumber": order.order_number,
            "totalAmount": money(order.total_amount),
            "status": order.status,
            "createdAt": order.to_dict()["createdAt"],
        },
        "Order placed successfully",
    )


# ---------- OWNER ----------
@bp.get("")
@owner_required
def list_orders():
    query = Order.query.filter_by(restaurant_id=g.restaurant.id)
    status = request.args.get("status")
    if status:
        if status not in ORDER_STATUSES:
            abort(400, description=f"Unknown order status: {status}")
        query = query.filter_by(status=status)
    limit = max(1, min(request.args.get("limit", 100, type=int), 500))
    rows = query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()
    return success([o.to_dict() for o in rows])


@bp.patch("/<int:order_id>")
@owner_required
def update_order_status(order_id):
    order = db.session.get(Order, order_id)
    if order is None or order.restaurant_id != g.restaurant.id:
        abort(404, description="Order not found")

    data = load_json(UpdateOrderStatusRequest)
    previous = order.status
    order.status = data.status
    db.session.commit()

    logger.info("Order %s status %s -> %s", order.id, previous, order.status)
    get_notifier().order_status_updated(order)
    return success(order.to_dict(), "Order status updated successfully")
