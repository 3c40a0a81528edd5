"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Razorpay endpoints (gateway order creation, single-order verification, the
payment.captured webhook) and the owner dashboard feeds: pending counter
payments and live sales stats.
"""

import json
from datetime import timedelta
from decimal import Decimal
from http import HTTPStatus

from flask import Blueprint, abort, current_app, jsonify, request

from extensions import db
from guards import current_user, login_required
from logging_config import get_logger
from models import (
    PAYMENT_COUNTER,
    PAYMENT_ONLINE,
    PAYMENT_PAID,
    PAYMENT_PENDING,
    ZERO,
    Order,
    TableSession,
    money,
    utcnow,
)
from notifier import get_notifier
from payments import (
    GatewayNotConfigured,
    GatewayRejected,
    create_gateway_order,
    fetch_gateway_order,
    to_paise,
    verify_payment_signature,
    verify_webhook_signature,
)
from responses import error, success
from schemas import CreateGatewayOrderRequest, VerifyOrderPaymentRequest, load_json
from session_lifecycle import session_total, settle_session

bp = Blueprint("payment_api", __name__)

logger = get_logger(__name__)

# captured amount may differ from the session total by a rounding paisa
AMOUNT_TOLERANCE_PAISE = 1

TOP_SELLERS = 5
TOP_SELLERS_WINDOW_DAYS = 30


# ---------- CHECKOUT ----------
@bp.post("/payment/create-order")
def create_order():
    data = load_json(CreateGatewayOrderRequest)
    notes = data.notes.model_dump(by_alias=True) if data.notes else None
    try:
        gateway_order = create_gateway_order(data.amount, data.currency, data.receipt, notes)
    except GatewayNotConfigured:
        logger.error("Payment gateway credentials missing")
        return error("Payment gateway not configured", HTTPStatus.INTERNAL_SERVER_ERROR)
    except GatewayRejected as exc:
        return error("Payment gateway error", message=str(exc))

    return success(
        {
            "orderId": gateway_order["id"],
            "amount": gateway_order["amount"],
            "currency": gateway_order["currency"],
            "keyId": current_app.config["RAZORPAY_KEY_ID"],
        }
    )


@bp.post("/payment/verify")
def verify_order_payment():
    proof = load_json(VerifyOrderPaymentRequest)
    if not verify_payment_signature(proof.razorpay_order_id, proof.razorpay_payment_id, proof.razorpay_signature):
        logger.warning("Rejected forged payment signature for order %s", proof.order_id)
        abort(400, description="Invalid payment signature")

    order = db.session.get(Order, proof.order_id)
    if order is None:
        abort(404, description="Order not found")
    if order.is_paid:
        abort(400, description="Order is already paid")

    order.status = "paid"
    order.is_paid = True
    order.payment_status = PAYMENT_PAID
    order.payment_id = proof.razorpay_payment_id
    db.session.commit()

    logger.info("Order %s paid online", order.id)
    get_notifier().order_status_updated(order)
    return success(order.to_dict(), "Payment verified successfully")


# ---------- WEBHOOK ----------
def _acknowledge():
    return jsonify({"received": True})


def _captured_payment(event):
    if event.get("event") != "payment.captured":
        return None
    entity = event
    for key in ("payload", "payment", "entity"):
        entity = entity.get(key) if isinstance(entity, dict) else None
    if not isinstance(entity, dict) or entity.get("status") != "captured" or not entity.get("order_id"):
        return None
    return entity


@bp.post("/webhooks/razorpay")
def razorpay_webhook():
    secret = current_app.config.get("RAZORPAY_WEBHOOK_SECRET")
    if not secret:
        logger.warning("RAZORPAY_WEBHOOK_SECRET not set; webhook ignored")
        return _acknowledge()

    raw_body = request.get_data()
    if not verify_webhook_signature(raw_body, request.headers.get("X-Razorpay-Signature", ""), secret):
        logger.warning("Webhook signature mismatch")
        abort(400, description="Invalid signature")

    try:
        event = json.loads(raw_body or b"{}")
    except ValueError:
        abort(400, description="Malformed webhook payload")
    if not isinstance(event, dict):
        abort(400, description="Malformed webhook payload")

    payment = _captured_payment(event)
    if payment is None:
        return _acknowledge()
    try:
        captured = int(payment.get("amount") or 0)
    except (TypeError, ValueError):
        abort(400, description="Malformed webhook payload")

    receipt = str(fetch_gateway_order(payment["order_id"]).get("receipt") or "")
    table_session = db.session.get(TableSession, int(receipt)) if receipt.isdigit() else None
    if table_session is None:
        logger.warning("Webhook for gateway order %s has no matching session", payment["order_id"])
        return _acknowledge()
    if table_session.payment_status == PAYMENT_PAID:
        return _acknowledge()

    expected = to_paise(session_total(table_session))
    if abs(captured - expected) > AMOUNT_TOLERANCE_PAISE:
        logger.error("Webhook amount mismatch for session %s: %s != %s", table_session.id, captured, expected)
        abort(400, description="Amount mismatch")

    if settle_session(table_session, PAYMENT_ONLINE, payment.get("id")):
        get_notifier().session_closed(table_session)
    return _acknowledge()


# ---------- OWNER ----------
@bp.get("/admin/pending-counter-payments")
@login_required
def pending_counter_payments():
    user = current_user()
    restaurant = user.restaurant
    if user.is_super_admin or restaurant is None:
        return success([])

    rows = (
        TableSession.query.filter_by(
            restaurant_id=restaurant.id, payment_method=PAYMENT_COUNTER, payment_status=PAYMENT_PENDING
        )
        .order_by(TableSession.started_at.desc())
        .all()
    )
    return success([s.to_owner_dict() for s in rows])


def _empty_stats():
    return {"todayRevenue": money(ZERO), "pendingCounterCount": 0, "topSellingItems": []}


def _top_selling(orders, limit=TOP_SELLERS):
    sold = {}
    for order in orders:
        for line in order.items or []:
            entry = sold.setdefault(line["itemId"], {"name": line["name"], "quantity": 0, "revenue": ZERO})
            entry["quantity"] += line["quantity"]
            entry["revenue"] += Decimal(line["price"]) * line["quantity"]
    ranked = sorted(sold.values(), key=lambda e: e["quantity"], reverse=True)[:limit]
    return [{"name": e["name"], "quantity": e["quantity"], "revenue": money(e["revenue"])} for e in ranked]


@bp.get("/admin/dashboard-stats")
@login_required
def dashboard_stats():
    """Live sales figures for the owner dashboard, refreshed after each settlement."""
    user = current_user()
    restaurant = user.restaurant
    if user.is_super_admin or restaurant is None:
        return success(_empty_stats())

    now = utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    paid_orders = (
        Order.query.filter(
            Order.restaurant_id == restaurant.id,
            Order.is_paid.is_(True),
            Order.created_at >= now - timedelta(days=TOP_SELLERS_WINDOW_DAYS),
        )
        .order_by(Order.created_at, Order.id)
        .all()
    )

    revenue = sum((o.total_amount for o in paid_orders if o.created_at >= start_of_day), ZERO)
    pending = TableSession.query.filter_by(
        restaurant_id=restaurant.id, payment_method=PAYMENT_COUNTER, payment_status=PAYMENT_PENDING
    ).count()
    return success(
        {
            "todayRevenue": money(revenue),
            "pendingCounterCount": pending,
            "topSellingItems": _top_selling(paid_orders),
        }
    )
