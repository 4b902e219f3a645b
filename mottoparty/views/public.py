from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from flask.views import MethodView

from ..models import MottoSubmission, Participant
from ..services.repository import SQLAlchemyRaffleRepository
from ..services.results import raffle_status


public_bp = Blueprint("public", __name__)


class LandingView(MethodView):
    def get(self):
        return jsonify({
            "raffle_status": raffle_status(SQLAlchemyRaffleRepository()),
            "num_participants": Participant.query.count(),
            "num_mottos": MottoSubmission.query.count(),
            "organizer": current_app.config.get("MOTTO_ORGANIZER_NAME"),
        })


public_bp.add_url_rule("/", view_func=LandingView.as_view("landing"))
