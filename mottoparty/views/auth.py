from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask.views import MethodView
from flask_login import login_user, logout_user, current_user
from flask_wtf.csrf import generate_csrf

from ..errors import RegistrationClosed
from ..extensions import db
from ..models import Participant, ensure_raffle_open, normalize_name
from ..policies import raffle_completed
from ..security import hash_password, verify_password


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

logger = logging.getLogger(__name__)


def _credentials() -> tuple[str, str]:
    data = request.get_json(silent=True) or {}
    name = data.get("name")
    password = data.get("password")
    if not isinstance(name, str) or not isinstance(password, str):
        return "", ""
    return normalize_name(name), password


class RegisterView(MethodView):
    def post(self):
        name, password = _credentials()

        if not name or not password:
            return jsonify({"error": "Name and password are required."}), 400

        # Late joiners would have no assignment.
        if raffle_completed():
            raise RegistrationClosed()

        if Participant.query.filter_by(name=name).first():
            return jsonify({"error": "This name is already taken. Please choose another."}), 409

        p = Participant(name=name, passkey_hash=hash_password(password))
        db.session.add(p)
        db.session.flush()
        ensure_raffle_open(RegistrationClosed)
        db.session.commit()

        logger.info("Registered participant %s", name)
        return jsonify({"message": "Profile created.", "user": {"name": name}}), 201


class LoginView(MethodView):
    def post(self):
        name, password = _credentials()

        if not name or not password:
            return jsonify({"error": "Name and password are required."}), 400

        user = Participant.query.filter_by(name=name).first()
        if not user or not verify_password(password, user.passkey_hash):
            logger.info("Failed login for %s", name)
            return jsonify({"error": "Invalid credentials."}), 401

        login_user(user)
        return jsonify({"message": "Login successful.", "user": {"name": user.name}})


class LogoutView(MethodView):
    def post(self):
        if current_user.is_authenticated:
            logout_user()
        return jsonify({"message": "Logged out."})


class CsrfTokenView(MethodView):
    """JSON clients echo this back in the X-CSRFToken header."""

    def get(self):
        return jsonify({"csrf_token": generate_csrf()})


auth_bp.add_url_rule("/register", view_func=RegisterView.as_view("register"), methods=["POST"])
auth_bp.add_url_rule("/login", view_func=LoginView.as_view("login"), methods=["POST"])
auth_bp.add_url_rule("/logout", view_func=LogoutView.as_view("logout"), methods=["POST"])
auth_bp.add_url_rule("/csrf-token", view_func=CsrfTokenView.as_view("csrf_token"), methods=["GET"])
