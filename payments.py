"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Razorpay integration: checkout/webhook signature verification and the SDK
client used to create and fetch gateway orders.
"""

import hashlib
import hmac
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app

from logging_config import get_logger

logger = get_logger(__name__)


class GatewayNotConfigured(RuntimeError):
    pass


class GatewayRejected(Exception):
    pass


def _hmac_sha256_hex(secret, message):
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def _matches(expected, supplied):
    return hmac.compare_digest(expected.encode("utf-8"), (supplied or "").encode("utf-8"))


def verify_payment_signature(order_id, payment_id, signature):
    """Checkout callback check: HMAC-SHA256 of "<order_id>|<payment_id>" keyed with the API secret."""
    secret = current_app.config.get("RAZORPAY_KEY_SECRET")
    if not secret:
        logger.error("RAZORPAY_KEY_SECRET not configured; refusing payment signature")
        return False
    return _matches(_hmac_sha256_hex(secret, f"{order_id}|{payment_id}"), signature)


def verify_webhook_signature(raw_body, signature, secret):
    return _matches(_hmac_sha256_hex(secret, raw_body), signature)


def to_paise(amount):
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def gateway_client():
    """A Razorpay client built from the current credentials."""
    key_id = current_app.config.get("RAZORPAY_KEY_ID")
    key_secret = current_app.config.get("RAZORPAY_KEY_SECRET")
    if not key_id or not key_secret:
        raise GatewayNotConfigured("Razorpay credentials not configured")

    import razorpay

    return razorpay.Client(auth=(key_id, key_secret))


def create_gateway_order(amount, currency, receipt, notes=None):
    """
    Create a Razorpay order for `amount` (rupees, Decimal).

    Raises:
        GatewayNotConfigured: API keys are missing
        GatewayRejected: the gateway refused the request
    """
    client = gateway_client()
    from razorpay.errors import BadRequestError, GatewayError

    payload = {"amount": to_paise(amount), "currency": currency, "receipt": receipt}
    if notes:
        payload["notes"] = notes
    try:
        order = client.order.create(data=payload)
    except (BadRequestError, GatewayError) as exc:
        logger.error("Razorpay order creation refused: %s", exc)
        raise GatewayRejected(str(exc) or "Authentication failed") from exc
    logger.info("Razorpay order created: %s", order.get("id"))
    return order


def fetch_gateway_order(gateway_order_id):
    return gateway_client().order.fetch(gateway_order_id)
