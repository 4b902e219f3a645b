from __future__ import annotations

import logging
import os

import click
from flask import Flask, jsonify
from flask.cli import with_appcontext
from flask.logging import default_handler
from sqlalchemy.exc import SQLAlchemyError

from .errors import MottoPartyError
from .extensions import db, login_manager, migrate, csrf
from .models import RaffleState, normalize_name
from .views.auth import auth_bp
from .views.mottos import mottos_bp
from .views.public import public_bp
from .views.raffle import raffle_bp


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///mottoparty.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # The only participant allowed to start the raffle
    app.config["MOTTO_ORGANIZER_NAME"] = os.environ.get("MOTTO_ORGANIZER_NAME", "antonia")
    app.config["MOTTO_MAX_LENGTH"] = int(os.environ.get("MOTTO_MAX_LENGTH", "280"))
    app.config["ASSIGNMENT_ENC_KEY"] = os.environ.get("ASSIGNMENT_ENC_KEY", "")
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")

    if test_config:
        app.config.update(test_config)
    app.config["MOTTO_ORGANIZER_NAME"] = normalize_name(app.config["MOTTO_ORGANIZER_NAME"])

    _configure_logging(app)

    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(mottos_bp)
    app.register_blueprint(raffle_bp)

    _register_error_handlers(app)
    app.cli.add_command(init_db_command)

    return app


def _configure_logging(app: Flask) -> None:
    logger = logging.getLogger(__name__)
    logger.setLevel(app.config["LOG_LEVEL"])
    if default_handler not in logger.handlers:
        logger.addHandler(default_handler)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(MottoPartyError)
    def handle_motto_party_error(e: MottoPartyError):
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        app.logger.exception("Database error")
        db.session.rollback()
        return jsonify({"error": "The data store could not be reached. Please try again later."}), 503


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create tables and the raffle state row."""
    db.create_all()
    state = RaffleState.get_singleton()
    click.echo(f"Database ready (raffle status: {state.status.value}).")
