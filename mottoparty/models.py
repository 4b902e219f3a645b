from __future__ import annotations

import enum
from datetime import datetime, timezone

from flask_login import UserMixin
from sqlalchemy.exc import IntegrityError

from .extensions import db, login_manager

RAFFLE_STATE_ID = 1


def utcnow() -> datetime:
    # Naive UTC, matching what SQLite round-trips.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_name(name: str | None) -> str:
    """Participant names are case-insensitive; compare and store them this way."""
    return (name or "").strip().lower()


class RaffleStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    COMPLETED = "completed"


class Participant(UserMixin, db.Model):
    __tablename__ = "participants"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)

    # passlib argon2 hash of the password
    passkey_hash = db.Column(db.String(255), nullable=False)

    registered_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    motto = db.relationship(
        "MottoSubmission",
        back_populates="submitter",
        uselist=False,
        cascade="all, delete-orphan",
    )
    assignment = db.relationship(
        "Assignment",
        back_populates="participant",
        uselist=False,
        cascade="all, delete-orphan",
    )


class MottoSubmission(db.Model):
    """At most one live motto per participant; resubmitting overwrites it."""

    __tablename__ = "motto_submissions"

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(
        db.Integer,
        db.ForeignKey("participants.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    text = db.Column(db.Text, nullable=False)
    submitted_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    submitter = db.relationship("Participant", back_populates="motto")


class Assignment(db.Model):
    __tablename__ = "assignments"

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(
        db.Integer,
        db.ForeignKey("participants.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Fernet token of the assigned motto text, see security.encrypt_assignment_text
    motto_ciphertext = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    participant = db.relationship("Participant", back_populates="assignment")


class RaffleState(db.Model):
    __tablename__ = "raffle_state"

    id = db.Column(db.Integer, primary_key=True)
    status = db.Column(
        db.Enum(RaffleStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        default=RaffleStatus.NOT_STARTED,
        nullable=False,
    )
    completed_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_completed(self) -> bool:
        return self.status == RaffleStatus.COMPLETED

    @classmethod
    def get_singleton(cls) -> "RaffleState":
        obj = db.session.get(cls, RAFFLE_STATE_ID)
        if obj is None:
            obj = cls(id=RAFFLE_STATE_ID, status=RaffleStatus.NOT_STARTED)
            db.session.add(obj)
            try:
                db.session.commit()
            except IntegrityError:
                # another request created the row first
                db.session.rollback()
                obj = db.session.get(cls, RAFFLE_STATE_ID)
        return obj

    @classmethod
    def locked_status(cls) -> RaffleStatus:
        """Read the status straight from the database, row-locked until the
        transaction ends on backends that support FOR UPDATE."""
        status = db.session.execute(
            db.select(cls.status).where(cls.id == RAFFLE_STATE_ID).with_for_update()
        ).scalar_one_or_none()
        return status or RaffleStatus.NOT_STARTED


def ensure_raffle_open(error_cls: type[Exception]) -> None:
    """
    Call after flushing a participant-side write and before committing it.

    The write and this read share one transaction, so a raffle that committed
    after the caller's first check is seen here and the write is dropped.
    """
    if RaffleState.locked_status() == RaffleStatus.COMPLETED:
        db.session.rollback()
        raise error_cls()


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(Participant, int(user_id))
