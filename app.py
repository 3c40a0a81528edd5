"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Main application entry point. Builds the Flask app, binds the database,
Socket.IO and CORS, selects the notifier and registers every blueprint.
"""

import os

import click
from flask import Flask, jsonify

import admin_api
import auth_api
import cron_api
import orders_api
import payment_api
import realtime_api
import restaurants_api
import sessions_api
from config import Config, TestingConfig
from errors import register_error_handlers
from extensions import cors, db, socketio
from logging_config import APP_LOGGER, configure_logging
from notifier import init_notifier

BLUEPRINTS = (
    auth_api.bp,
    restaurants_api.bp,
    sessions_api.bp,
    orders_api.bp,
    payment_api.bp,
    realtime_api.bp,
    admin_api.bp,
    cron_api.bp,
)


def create_app(testing: bool = False):
    app = Flask(__name__)
    app.config.from_object(TestingConfig if testing else Config)

    configure_logging(APP_LOGGER, app.config["LOG_LEVEL"])

    db.init_app(app)
    socketio.init_app(
        app,
        async_mode=app.config["SOCKETIO_ASYNC_MODE"],
        cors_allowed_origins=app.config["CORS_ORIGINS"],
    )
    cors.init_app(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)

    init_notifier(app)
    register_error_handlers(app)

    for bp in BLUEPRINTS:
        app.register_blueprint(bp)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "realtimeMode": app.config["REALTIME_MODE"]})

    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created.")

    return app


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
    socketio.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5013")))
