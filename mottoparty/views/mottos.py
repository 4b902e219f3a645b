from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user

from ..models import MottoSubmission
from ..policies import LoginRequiredMixin
from ..services.mottos import get_motto, list_mottos, submit_motto


mottos_bp = Blueprint("mottos", __name__, url_prefix="/mottos")


def _serialize(m: MottoSubmission) -> dict:
    return {
        "name": m.submitter.name,
        "text": m.text,
        "updated_at": m.updated_at.isoformat(),
    }


class MottoListView(LoginRequiredMixin):
    def get(self):
        return jsonify([_serialize(m) for m in list_mottos()])

    def post(self):
        data = request.get_json(silent=True) or {}
        text = data.get("text")
        if not isinstance(text, str):
            text = None

        submission, created = submit_motto(current_user, text)
        message = "Motto submitted." if created else "Motto updated."
        return jsonify({"message": message, "motto": _serialize(submission)}), 201 if created else 200


class MyMottoView(LoginRequiredMixin):
    def get(self):
        m = get_motto(current_user)
        if m is None:
            return jsonify({"error": "You have not submitted a motto yet."}), 404
        return jsonify(_serialize(m))


mottos_bp.add_url_rule("", view_func=MottoListView.as_view("list"), methods=["GET", "POST"])
mottos_bp.add_url_rule("/mine", view_func=MyMottoView.as_view("mine"))
