"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Table-session endpoints: open/fetch a session by QR scan, close it with a
payment method, counter-payment request, online verification and the owner's
mark-paid / cleanup actions.
"""

from flask import Blueprint, abort, g, request

from errors import Conflict
from guards import ensure_same_restaurant, owner_required
from logging_config import get_logger, token_preview
from models import PAYMENT_ONLINE, PAYMENT_PAID, SESSION_ACTIVE, Restaurant, TableSession, money
from notifier import get_notifier
from payments import verify_payment_signature
from responses import created, success
from schemas import CloseSessionRequest, CreateSessionRequest, OnlinePaymentProof, load_json
from session_lifecycle import (
    cleanup_inactive,
    close_session,
    expire_if_idle,
    find_by_token,
    open_session,
    request_counter_payment,
    settle_session,
)

bp = Blueprint("sessions_api", __name__, url_prefix="/sessions")

logger = get_logger(__name__)


def _session_or_404(session_token, description="Session not found"):
    table_session = find_by_token(session_token)
    if table_session is None:
        abort(404, description=description)
    return table_session


def _summary(table_session):
    return {
        "id": table_session.id,
        "sessionToken": table_session.session_token,
        "tableNumber": table_session.table_number,
        "status": table_session.status,
        "totalAmount": money(table_session.total_amount),
        "paymentMethod": table_session.payment_method,
        "paymentStatus": table_session.payment_status,
    }


# ---------- CUSTOMER ----------
@bp.post("/create")
def create_session():
    data = load_json(CreateSessionRequest)
    restaurant = Restaurant.query.filter_by(slug=data.restaurant_slug).first()
    if restaurant is None or not restaurant.is_active:
        abort(404, description="Restaurant not found or inactive")

    table_session, is_new = open_session(restaurant, data.table_number)
    if is_new:
        return created(_summary(table_session), "Session created")
    return success(_summary(table_session), "Existing session found")


@bp.get("/<session_token>")
def get_session(session_token):
    table_session = _session_or_404(session_token)
    expire_if_idle(table_session)
    return success(
        {
            "session": table_session.to_dict(),
            "orders": [o.to_dict() for o in table_session.orders],
        }
    )


@bp.post("/<session_token>/close")
def close(session_token):
    data = load_json(CloseSessionRequest)
    table_session = _session_or_404(session_token)
    close_session(table_session, data.payment_method, data.payment_id)

    get_notifier().session_closed(table_session)
    return success(_summary(table_session), "Session closed")


@bp.post("/<session_token>/request-counter-payment")
def counter_payment(session_token):
    table_session = _session_or_404(session_token)
    expire_if_idle(table_session)
    if table_session.status != SESSION_ACTIVE:
        raise Conflict("Session is not active")

    request_counter_payment(table_session)
    get_notifier().counter_payment_requested(table_session)
    return success(_summary(table_session), "Counter payment requested. Staff have been notified.")


@bp.post("/<session_token>/verify-online-payment")
def verify_online_payment(session_token):
    proof = load_json(OnlinePaymentProof)
    if not verify_payment_signature(proof.razorpay_order_id, proof.razorpay_payment_id, proof.razorpay_signature):
        logger.warning("Rejected forged payment signature for session %s", token_preview(session_token))
        abort(400, description="Invalid payment signature")

    table_session = _session_or_404(session_token, "Session not found or expired")
    if table_session.payment_status == PAYMENT_PAID:
        raise Conflict("Session is already paid")
    if not settle_session(table_session, PAYMENT_ONLINE, proof.razorpay_payment_id):
        raise Conflict("Session is already paid")

    get_notifier().session_closed(table_session)
    return success(_summary(table_session), "Payment verified and session closed")


# ---------- OWNER ----------
@bp.get("")
@owner_required
def list_sessions():
    query = TableSession.query.filter_by(restaurant_id=g.restaurant.id)
    status = request.args.get("status")
    if status:
        query = query.filter_by(status=status)
    rows = query.order_by(TableSession.started_at.desc()).limit(200).all()
    return success([s.to_owner_dict() for s in rows])


@bp.post("/<session_token>/mark-paid")
@owner_required
def mark_paid(session_token):
    table_session = _session_or_404(session_token)
    ensure_same_restaurant(table_session, "Session does not belong to your restaurant")
    if table_session.payment_status == PAYMENT_PAID or not settle_session(table_session):
        raise Conflict("Payment already marked as paid")

    notifier = get_notifier()
    notifier.counter_payment_received(table_session)
    notifier.session_closed(table_session)
    return success(_summary(table_session), "Payment marked as received")


@bp.post("/cleanup-inactive")
@owner_required
def cleanup():
    closed = cleanup_inactive(g.restaurant.id)
    return success({"closedCount": len(closed), "sessionIds": closed}, f"Closed {len(closed)} inactive session(s)")
