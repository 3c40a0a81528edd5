"""Scheduled maintenance endpoints, called by an external scheduler with the cron bearer token."""

from functools import wraps

from flask import Blueprint, abort, current_app, request

from extensions import db
from logging_config import get_logger
from models import ROLE_OWNER, TIER_FREE, User, utcnow
from responses import success
from session_lifecycle import cleanup_inactive

bp = Blueprint("cron_api", __name__, url_prefix="/cron")

logger = get_logger(__name__)


def cron_secret_required(f):
    """Require ``Authorization: Bearer <CRON_SECRET>`` when a secret is configured."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        secret = current_app.config.get("CRON_SECRET")
        if secret and request.headers.get("Authorization") != f"Bearer {secret}":
            abort(401, description="Unauthorized")
        return f(*args, **kwargs)

    return decorated_function


@bp.get("/cleanup-sessions")
@cron_secret_required
def cleanup_sessions():
    closed = cleanup_inactive()
    return success({"closedCount": len(closed)}, f"Closed {len(closed)} inactive session(s)")


@bp.get("/expire-subscriptions")
@cron_secret_required
def expire_subscriptions():
    now = utcnow()
    lapsed = User.query.filter(
        User.role == ROLE_OWNER,
        User.subscription_tier != TIER_FREE,
        User.subscription_expires_at.isnot(None),
        User.subscription_expires_at < now,
    ).all()
    for user in lapsed:
        user.subscription_tier = TIER_FREE
        for restaurant in user.restaurants:
            restaurant.is_active = False
    db.session.commit()

    logger.info("Expired %d lapsed subscription(s)", len(lapsed))
    return success({"expiredCount": len(lapsed), "userIds": [u.id for u in lapsed]})
