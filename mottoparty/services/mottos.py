from __future__ import annotations

import logging

from flask import current_app

from ..errors import InvalidSubmission, SubmissionsClosed
from ..extensions import db
from ..models import MottoSubmission, Participant, RaffleState, ensure_raffle_open, utcnow


logger = logging.getLogger(__name__)


def submit_motto(participant: Participant, text: str | None) -> tuple[MottoSubmission, bool]:
    """Create or replace the participant's motto. Returns (submission, created)."""
    if RaffleState.get_singleton().is_completed:
        raise SubmissionsClosed()

    cleaned = (text or "").strip()
    if not cleaned:
        raise InvalidSubmission()

    max_length = current_app.config.get("MOTTO_MAX_LENGTH", 280)
    if len(cleaned) > max_length:
        raise InvalidSubmission(f"Motto must be at most {max_length} characters.")

    submission = MottoSubmission.query.filter_by(participant_id=participant.id).first()
    created = submission is None
    if created:
        submission = MottoSubmission(participant_id=participant.id, text=cleaned)
        db.session.add(submission)
    else:
        submission.text = cleaned
        submission.updated_at = utcnow()
    db.session.flush()
    ensure_raffle_open(SubmissionsClosed)
    db.session.commit()

    logger.info("Motto %s for %s", "submitted" if created else "updated", participant.name)
    return submission, created


def list_mottos() -> list[MottoSubmission]:
    return (
        MottoSubmission.query.join(MottoSubmission.submitter)
        .order_by(MottoSubmission.submitted_at.asc(), MottoSubmission.id.asc())
        .all()
    )


def get_motto(participant: Participant) -> MottoSubmission | None:
    return MottoSubmission.query.filter_by(participant_id=participant.id).first()
