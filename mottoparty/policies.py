from __future__ import annotations

from flask import current_app, jsonify
from flask.views import MethodView
from flask_login import current_user

from .extensions import login_manager
from .models import RaffleState, normalize_name


def is_organizer() -> bool:
    organizer = normalize_name(current_app.config.get("MOTTO_ORGANIZER_NAME"))
    return bool(organizer) and current_user.is_authenticated and current_user.name == organizer


def raffle_completed() -> bool:
    return RaffleState.get_singleton().is_completed


class LoginRequiredMixin(MethodView):
    def dispatch_request(self, *args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        return super().dispatch_request(*args, **kwargs)


class OrganizerRequiredMixin(LoginRequiredMixin):
    def dispatch_request(self, *args, **kwargs):
        if current_user.is_authenticated and not is_organizer():
            return jsonify({"error": "Only the organizer can do that."}), 403
        return super().dispatch_request(*args, **kwargs)
