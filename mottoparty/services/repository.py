"""Storage boundary for the raffle.

The coordinator and the result queries only talk to :class:`RaffleRepository`.
:class:`SQLAlchemyRaffleRepository` is the backend the app ships with; it works
against whatever database ``SQLALCHEMY_DATABASE_URI`` points at.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import wraps
from typing import Iterable, NamedTuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from ..errors import RepositoryUnavailable, ResultsMissing
from ..extensions import db
from ..models import (
    RAFFLE_STATE_ID,
    Assignment,
    MottoSubmission,
    Participant,
    RaffleState,
    RaffleStatus,
    normalize_name,
    utcnow,
)
from ..security import decrypt_assignment_text, encrypt_assignment_text
from .assignment import Submission

logger = logging.getLogger(__name__)


class AssignmentRecord(NamedTuple):
    participant: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"participant": self.participant, "text": self.text}


class RaffleRepository(ABC):
    @abstractmethod
    def list_participants(self) -> list[str]:
        """Normalized participant names in registration order."""

    @abstractmethod
    def list_submissions(self) -> list[Submission]:
        ...

    @abstractmethod
    def get_raffle_state(self) -> RaffleStatus:
        ...

    @abstractmethod
    def try_set_raffle_completed(self) -> bool:
        """Atomically flip NOT_STARTED -> COMPLETED; False if already completed."""

    @abstractmethod
    def save_assignments(self, records: Iterable[AssignmentRecord]) -> None:
        ...

    @abstractmethod
    def get_assignment(self, participant: str) -> str | None:
        ...

    @abstractmethod
    def list_assignments(self) -> list[AssignmentRecord]:
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...


def _decrypt(token: str) -> str:
    try:
        return decrypt_assignment_text(token)
    except ValueError as e:
        logger.error("Stored assignment cannot be decrypted; was the key rotated?")
        raise ResultsMissing(
            "Stored raffle results cannot be read with the current encryption key."
        ) from e


def _guarded(fn):
    """Turn driver/ORM failures into RepositoryUnavailable after rolling back."""

    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception("Repository call %s failed", fn.__name__)
            db.session.rollback()
            raise RepositoryUnavailable() from e

    return wrapper


class SQLAlchemyRaffleRepository(RaffleRepository):
    """
    Claim and assignment rows share the session transaction: nothing is visible
    to other connections until commit(), and rollback() undoes the claim.
    """

    @_guarded
    def list_participants(self) -> list[str]:
        people = Participant.query.order_by(Participant.registered_at.asc(), Participant.id.asc()).all()
        return [p.name for p in people]

    @_guarded
    def list_submissions(self) -> list[Submission]:
        rows = db.session.execute(
            select(Participant.name, MottoSubmission.text)
            .select_from(MottoSubmission)
            .join(MottoSubmission.submitter)
            .order_by(MottoSubmission.submitted_at.asc(), MottoSubmission.id.asc())
        ).all()
        return [Submission(submitter=name, text=text) for name, text in rows]

    @_guarded
    def get_raffle_state(self) -> RaffleStatus:
        status = db.session.execute(
            select(RaffleState.status).where(RaffleState.id == RAFFLE_STATE_ID)
        ).scalar_one_or_none()
        return status or RaffleStatus.NOT_STARTED

    @_guarded
    def try_set_raffle_completed(self) -> bool:
        if db.session.get(RaffleState, RAFFLE_STATE_ID) is None:
            # Stores set up without init-db: create the row already completed,
            # in this transaction. A concurrent insert fails the flush and
            # surfaces as RepositoryUnavailable.
            db.session.add(
                RaffleState(id=RAFFLE_STATE_ID, status=RaffleStatus.COMPLETED, completed_at=utcnow())
            )
            db.session.flush()
            return True
        result = db.session.execute(
            update(RaffleState)
            .where(RaffleState.id == RAFFLE_STATE_ID, RaffleState.status == RaffleStatus.NOT_STARTED)
            .values(status=RaffleStatus.COMPLETED, completed_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @_guarded
    def save_assignments(self, records: Iterable[AssignmentRecord]) -> None:
        records = list(records)
        names = [r.participant for r in records]
        ids = {
            p.name: p.id
            for p in Participant.query.filter(Participant.name.in_(names)).all()
        }
        missing = set(names) - set(ids)
        if missing:
            raise RepositoryUnavailable(
                f"Participants disappeared during the raffle: {', '.join(sorted(missing))}"
            )

        for r in records:
            db.session.add(
                Assignment(
                    participant_id=ids[r.participant],
                    motto_ciphertext=encrypt_assignment_text(r.text),
                )
            )
        # surface constraint violations here rather than at commit
        db.session.flush()

    @_guarded
    def get_assignment(self, participant: str) -> str | None:
        token = db.session.execute(
            select(Assignment.motto_ciphertext)
            .select_from(Assignment)
            .join(Assignment.participant)
            .where(Participant.name == normalize_name(participant))
        ).scalar_one_or_none()
        if token is None:
            return None
        return _decrypt(token)

    @_guarded
    def list_assignments(self) -> list[AssignmentRecord]:
        rows = db.session.execute(
            select(Participant.name, Assignment.motto_ciphertext)
            .select_from(Assignment)
            .join(Assignment.participant)
            .order_by(Participant.name.asc())
        ).all()
        return [AssignmentRecord(name, _decrypt(token)) for name, token in rows]

    @_guarded
    def commit(self) -> None:
        db.session.commit()

    def rollback(self) -> None:
        db.session.rollback()
