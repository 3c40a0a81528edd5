"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Runtime configuration. Values come from the environment (a local .env file is
loaded first) so the same code runs on a laptop and in production.
"""

import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _env_int(name, default):
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


def _env_origins(name, default="*"):
    raw = (os.getenv(name) or default).strip()
    if raw == "*":
        return raw
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///menumate.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Flask signed-cookie session carries the logged-in user id
    SESSION_COOKIE_NAME = os.getenv("COOKIE_NAME", "menumate_session")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("FLASK_ENV") == "production"
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)

    # "push" relays events over Socket.IO rooms, "poll" leaves it to /realtime/*
    REALTIME_MODE = os.getenv("REALTIME_MODE", "push").strip().lower()
    SOCKETIO_ASYNC_MODE = os.getenv("SOCKETIO_ASYNC_MODE", "eventlet")
    POLL_INTERVAL_SECONDS = max(1, _env_int("POLL_INTERVAL_SECONDS", 3))
    CORS_ORIGINS = _env_origins("CORS_ORIGINS")

    SESSION_IDLE_MINUTES = _env_int("SESSION_IDLE_MINUTES", 60)

    RAZORPAY_KEY_ID = (os.getenv("RAZORPAY_KEY_ID") or "").strip()
    RAZORPAY_KEY_SECRET = (os.getenv("RAZORPAY_KEY_SECRET") or "").strip()
    RAZORPAY_WEBHOOK_SECRET = (os.getenv("RAZORPAY_WEBHOOK_SECRET") or "").strip()

    CRON_SECRET = (os.getenv("CRON_SECRET") or "").strip()

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret"
    SESSION_COOKIE_SECURE = False
    SOCKETIO_ASYNC_MODE = "threading"
    REALTIME_MODE = "push"
    POLL_INTERVAL_SECONDS = 2
    SESSION_IDLE_MINUTES = 60
    RAZORPAY_KEY_ID = "rzp_test_key"
    RAZORPAY_KEY_SECRET = "rzp_test_secret"
    RAZORPAY_WEBHOOK_SECRET = "rzp_webhook_secret"
    CRON_SECRET = "cron-secret"
    LOG_LEVEL = "WARNING"
