from __future__ import annotations

from flask import Blueprint, jsonify
from flask.views import MethodView
from flask_login import current_user

from ..policies import LoginRequiredMixin, OrganizerRequiredMixin
from ..services.raffle import start_raffle
from ..services.repository import SQLAlchemyRaffleRepository
from ..services.results import get_all_results, get_result, raffle_status


raffle_bp = Blueprint("raffle", __name__, url_prefix="/raffle")


class StartRaffleView(LoginRequiredMixin):
    # The coordinator decides who may start it, so non-organizers get its Unauthorized.
    def post(self):
        records = start_raffle(current_user.name)
        return jsonify({
            "message": "Raffle conducted successfully.",
            "assignments": [r.to_dict() for r in records],
        })


class AllResultsView(OrganizerRequiredMixin):
    def get(self):
        results = get_all_results(SQLAlchemyRaffleRepository())
        return jsonify([r.to_dict() for r in results])


class MyResultView(LoginRequiredMixin):
    def get(self):
        return jsonify(get_result(SQLAlchemyRaffleRepository(), current_user.name).to_dict())


class StatusView(MethodView):
    def get(self):
        return jsonify({"status": raffle_status(SQLAlchemyRaffleRepository())})


raffle_bp.add_url_rule("/start", view_func=StartRaffleView.as_view("start"), methods=["POST"])
raffle_bp.add_url_rule("/results", view_func=AllResultsView.as_view("results"))
raffle_bp.add_url_rule("/my-result", view_func=MyResultView.as_view("my_result"))
raffle_bp.add_url_rule("/status", view_func=StatusView.as_view("status"))
