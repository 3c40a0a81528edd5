"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Best-effort real-time notifications for the owner dashboard and customer tables.

One Notifier interface, two implementations picked at start-up from
REALTIME_MODE: "push" relays named events to Socket.IO rooms, "poll" publishes
nothing and leaves clients to re-fetch /realtime/*. Publishing never raises;
the request that triggered it has already committed.
"""

import functools

from flask import current_app
from flask_socketio import emit, join_room, leave_room

from extensions import socketio
from guards import current_user
from logging_config import get_logger, token_preview
from models import TableSession, money, utcnow

logger = get_logger(__name__)

ORDER_CREATED = "order:created"
ORDER_STATUS_UPDATED = "order:status:updated"
COUNTER_PAYMENT_REQUESTED = "payment:counter:requested"
COUNTER_PAYMENT_RECEIVED = "payment:counter:received"
SESSION_UPDATED = "session:updated"
SESSION_CLOSED = "session:closed"


def restaurant_channel(restaurant_id):
    return f"restaurant-{restaurant_id}"


def session_channel(session_token):
    return f"session-{session_token}"


def best_effort(event):
    """Log and drop any failure while building or sending `event`."""

    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            try:
                return method(self, *args, **kwargs)
            except Exception:
                logger.warning("Failed to build %s notification", event, exc_info=True)
                return None

        return wrapper

    return decorator


class Notifier:
    mode = None

    def publish(self, channel, event, payload):
        raise NotImplementedError

    def _fanout(self, channels, event, payload):
        for channel in channels:
            try:
                self.publish(channel, event, payload)
            except Exception:
                logger.warning("Failed to publish %s to %s", event, channel.split("-")[0], exc_info=True)

    def _both(self, table_session):
        return [restaurant_channel(table_session.restaurant_id), session_channel(table_session.session_token)]

    # --------- order events ---------
    @best_effort(ORDER_CREATED)
    def order_created(self, order, table_session=None):
        payload = {"order": order.to_dict()}
        if table_session is not None:
            payload["session"] = {"id": table_session.id, "tableNumber": table_session.table_number}
        self._fanout([restaurant_channel(order.restaurant_id)], ORDER_CREATED, payload)

    @best_effort(ORDER_STATUS_UPDATED)
    def order_status_updated(self, order):
        payload = {"orderId": order.id, "status": order.status, "tableNumber": order.table_number}
        channels = [restaurant_channel(order.restaurant_id)]
        if order.table_session is not None:
            channels.append(session_channel(order.table_session.session_token))
        self._fanout(channels, ORDER_STATUS_UPDATED, payload)

    # --------- session events ---------
    @best_effort(SESSION_UPDATED)
    def session_updated(self, table_session):
        payload = {
            "sessionId": table_session.id,
            "tableNumber": table_session.table_number,
            "totalAmount": money(table_session.total_amount),
            "ordersCount": len(table_session.orders),
        }
        self._fanout(self._both(table_session), SESSION_UPDATED, payload)

    @best_effort(SESSION_CLOSED)
    def session_closed(self, table_session):
        payload = {
            "sessionId": table_session.id,
            "tableNumber": table_session.table_number,
            "status": table_session.status,
            "totalAmount": money(table_session.total_amount),
            "paymentMethod": table_session.payment_method,
        }
        self._fanout(self._both(table_session), SESSION_CLOSED, payload)

    @best_effort(COUNTER_PAYMENT_REQUESTED)
    def counter_payment_requested(self, table_session):
        payload = {
            "sessionId": table_session.id,
            "sessionToken": table_session.session_token,
            "tableNumber": table_session.table_number,
            "totalAmount": money(table_session.total_amount),
            "requestedAt": utcnow().isoformat(),
        }
        self._fanout([restaurant_channel(table_session.restaurant_id)], COUNTER_PAYMENT_REQUESTED, payload)

    @best_effort(COUNTER_PAYMENT_RECEIVED)
    def counter_payment_received(self, table_session):
        payload = {
            "sessionId": table_session.id,
            "tableNumber": table_session.table_number,
            "totalAmount": money(table_session.total_amount),
            "paidAt": (table_session.closed_at or utcnow()).isoformat(),
        }
        self._fanout(self._both(table_session), COUNTER_PAYMENT_RECEIVED, payload)


class SocketIONotifier(Notifier):
    mode = "push"

    def __init__(self, server):
        self.server = server

    def publish(self, channel, event, payload):
        self.server.emit(event, payload, to=channel)
        logger.debug("Emitted %s", event)


class PollingNotifier(Notifier):
    mode = "poll"

    def publish(self, channel, event, payload):
        # clients pick the change up on their next /realtime poll
        logger.debug("Poll mode, %s not pushed", event)


def init_notifier(app):
    mode = app.config.get("REALTIME_MODE", "push")
    if mode == "push":
        notifier = SocketIONotifier(socketio)
    elif mode == "poll":
        notifier = PollingNotifier()
    else:
        raise RuntimeError(f"Unknown REALTIME_MODE {mode!r}; expected 'push' or 'poll'")
    app.extensions["notifier"] = notifier
    return notifier


def get_notifier() -> Notifier:
    return current_app.extensions["notifier"]


# --------- Socket.IO room membership ---------
def _may_join(channel):
    kind, _, key = channel.partition("-")
    if not key:
        return False
    if kind == "restaurant":
        user = current_user()
        restaurant = user.restaurant if user is not None and not user.is_super_admin else None
        return restaurant is not None and str(restaurant.id) == key
    if kind == "session":
        return TableSession.query.filter_by(session_token=key).first() is not None
    return False


@socketio.on("join")
def on_join(data):
    channel = (data or {}).get("channel") or ""
    if not _may_join(channel):
        logger.info("Refused room join for %s", channel.split("-")[0] or "-")
        emit("join:refused", {"channel": channel})
        return
    join_room(channel)
    if channel.startswith("session-"):
        logger.info("Joined session room %s", token_preview(channel[len("session-"):]))
    emit("join:ok", {"channel": channel})


@socketio.on("leave")
def on_leave(data):
    channel = (data or {}).get("channel") or ""
    leave_room(channel)
