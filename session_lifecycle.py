"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Table-session lifecycle: open (idempotent per table), idle expiry, close,
counter-payment request and settlement.

Status changes are conditional UPDATEs (``WHERE id = :id AND <expected state>``)
so two concurrent requests cannot both apply the same transition. Session and
order writes belonging to one operation share a single commit.
"""

import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from errors import Conflict
from extensions import db
from logging_config import get_logger, token_preview
from models import (
    PAYMENT_COUNTER,
    PAYMENT_PAID,
    PAYMENT_PENDING,
    SESSION_ACTIVE,
    SESSION_CLOSED,
    SESSION_PAID,
    ZERO,
    Order,
    TableSession,
    utcnow,
)

logger = get_logger(__name__)


def idle_timeout():
    return timedelta(minutes=current_app.config.get("SESSION_IDLE_MINUTES", 60))


def new_session_token():
    return secrets.token_hex(32)


def find_by_token(session_token):
    return TableSession.query.filter_by(session_token=session_token).first()


def active_session_for(restaurant_id, table_number):
    return TableSession.query.filter_by(
        restaurant_id=restaurant_id, table_number=table_number, status=SESSION_ACTIVE
    ).first()


def session_total(table_session):
    """Sum of every order attached to the session, read fresh from the database."""
    orders = Order.query.filter_by(session_id=table_session.id).all()
    return sum((o.total_amount for o in orders), ZERO)


def _transition(table_session, expected, values):
    count = TableSession.query.filter(TableSession.id == table_session.id, *expected).update(
        values, synchronize_session=False
    )
    return count == 1


def is_idle(table_session, now=None):
    now = now or utcnow()
    return table_session.status == SESSION_ACTIVE and now - table_session.started_at > idle_timeout()


def expire_if_idle(table_session):
    """Close an active session that outlived the idle timeout. Returns True if it was closed now."""
    if not is_idle(table_session):
        return False
    closed = _transition(
        table_session,
        [TableSession.status == SESSION_ACTIVE],
        {"status": SESSION_CLOSED, "closed_at": utcnow()},
    )
    db.session.commit()
    if closed:
        logger.info("Auto-closed idle session %s", token_preview(table_session.session_token))
    return closed


def open_session(restaurant, table_number):
    """
    Return the table's active session, creating one if needed.

    Returns:
        (session, created) tuple
    """
    existing = active_session_for(restaurant.id, table_number)
    if existing is not None:
        expire_if_idle(existing)
        if existing.status == SESSION_ACTIVE:
            return existing, False

    table_session = TableSession(
        restaurant_id=restaurant.id,
        table_number=table_number,
        session_token=new_session_token(),
        status=SESSION_ACTIVE,
        total_amount=ZERO,
    )
    db.session.add(table_session)
    try:
        db.session.commit()
    except IntegrityError:
        # another request opened this table first
        db.session.rollback()
        winner = active_session_for(restaurant.id, table_number)
        if winner is None:
            raise
        return winner, False

    logger.info(
        "Opened session %s for restaurant %s table %s",
        token_preview(table_session.session_token),
        restaurant.id,
        table_number,
    )
    return table_session, True


def refresh_total(table_session):
    """Recompute the session total in the current transaction (caller commits)."""
    table_session.total_amount = session_total(table_session)
    return table_session.total_amount


def close_session(table_session, payment_method, payment_id=None):
    total = session_total(table_session)
    closed = _transition(
        table_session,
        [TableSession.status == SESSION_ACTIVE],
        {
            "status": SESSION_CLOSED,
            "payment_method": payment_method,
            "payment_status": PAYMENT_PENDING,
            "payment_id": payment_id,
            "total_amount": total,
            "closed_at": utcnow(),
        },
    )
    if not closed:
        db.session.rollback()
        raise Conflict("Session is not active")
    db.session.commit()
    logger.info("Closed session %s (%s)", token_preview(table_session.session_token), payment_method)
    return table_session


def request_counter_payment(table_session):
    total = session_total(table_session)
    flipped = _transition(
        table_session,
        [TableSession.status == SESSION_ACTIVE],
        {"payment_method": PAYMENT_COUNTER, "payment_status": PAYMENT_PENDING, "total_amount": total},
    )
    if not flipped:
        db.session.rollback()
        raise Conflict("Session is not active")
    db.session.commit()
    return table_session


def settle_session(table_session, payment_method=None, payment_id=None):
    """
    Mark the session and all of its orders paid.

    Returns False when the session was already paid (possibly by a concurrent
    request); nothing is written in that case.
    """
    method = payment_method or table_session.payment_method or PAYMENT_COUNTER
    values = {
        "status": SESSION_PAID,
        "payment_method": method,
        "payment_status": PAYMENT_PAID,
        "total_amount": session_total(table_session),
        "closed_at": utcnow(),
    }
    if payment_id:
        values["payment_id"] = payment_id

    settled = _transition(
        table_session,
        [or_(TableSession.payment_status.is_(None), TableSession.payment_status != PAYMENT_PAID)],
        values,
    )
    if not settled:
        db.session.rollback()
        return False

    order_values = {"is_paid": True, "payment_status": PAYMENT_PAID, "status": "paid"}
    if payment_id:
        order_values["payment_id"] = payment_id
    Order.query.filter(Order.session_id == table_session.id).update(order_values, synchronize_session=False)
    db.session.commit()

    logger.info("Settled session %s via %s", token_preview(table_session.session_token), method)
    return True


def cleanup_inactive(restaurant_id=None):
    """
    Close active sessions that started before the idle cutoff and have had no
    order since. Returns the ids of the sessions closed.
    """
    cutoff = utcnow() - idle_timeout()
    query = TableSession.query.filter(TableSession.status == SESSION_ACTIVE, TableSession.started_at < cutoff)
    if restaurant_id is not None:
        query = query.filter(TableSession.restaurant_id == restaurant_id)

    stale = []
    for table_session in query.all():
        last_order_at = (
            db.session.query(db.func.max(Order.created_at)).filter(Order.session_id == table_session.id).scalar()
        )
        if last_order_at is None or last_order_at < cutoff:
            stale.append(table_session.id)

    if stale:
        TableSession.query.filter(TableSession.id.in_(stale), TableSession.status == SESSION_ACTIVE).update(
            {"status": SESSION_CLOSED, "closed_at": utcnow()}, synchronize_session=False
        )
        db.session.commit()
    logger.info("Inactive session cleanup closed %d session(s)", len(stale))
    return stale
