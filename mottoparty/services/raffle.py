from __future__ import annotations

import logging
import threading

from flask import current_app

from ..errors import AlreadyCompleted, NoParticipants, NoSubmissions, Unauthorized
from ..models import RaffleStatus, normalize_name
from .assignment import Shuffler, assign_mottos
from .repository import AssignmentRecord, RaffleRepository, SQLAlchemyRaffleRepository
from .shuffle import shuffle as fisher_yates

logger = logging.getLogger(__name__)

# Serializes raffle runs inside one process. Across processes the
# compare-and-set in try_set_raffle_completed() is what decides the winner.
_raffle_lock = threading.Lock()


class RaffleCoordinator:
    def __init__(self, repository: RaffleRepository, organizer: str, shuffle: Shuffler = fisher_yates):
        self.repository = repository
        self.organizer = normalize_name(organizer)
        self.shuffle = shuffle

    def run(self, initiator: str) -> list[AssignmentRecord]:
        """
        Draw and persist the assignments exactly once.

        Raises Unauthorized, AlreadyCompleted, NoParticipants or NoSubmissions,
        in that order of precedence, and RepositoryUnavailable if the store
        fails. On any failure the claim is rolled back and nothing is written.
        """
        initiator = normalize_name(initiator)
        if not self.organizer or initiator != self.organizer:
            logger.warning("Raffle start refused for %r: not the organizer", initiator)
            raise Unauthorized()

        with _raffle_lock:
            return self._run_locked()

    def _run_locked(self) -> list[AssignmentRecord]:
        repo = self.repository

        if repo.get_raffle_state() == RaffleStatus.COMPLETED:
            raise AlreadyCompleted()

        participants = repo.list_participants()
        if not participants:
            raise NoParticipants()

        mottos = repo.list_submissions()
        if not mottos:
            raise NoSubmissions()

        if not repo.try_set_raffle_completed():
            logger.info("Raffle claim lost to a concurrent run")
            repo.rollback()
            raise AlreadyCompleted()

        try:
            mapping = assign_mottos(participants, mottos, shuffle=self.shuffle)
            records = [AssignmentRecord(p, mapping[p]) for p in participants]
            repo.save_assignments(records)
            repo.commit()
        except Exception:
            logger.exception("Raffle failed after claiming; rolling back")
            repo.rollback()
            raise

        logger.info(
            "Raffle completed: %d participants, %d mottos", len(participants), len(mottos)
        )
        return records


def start_raffle(initiator: str) -> list[AssignmentRecord]:
    coordinator = RaffleCoordinator(
        SQLAlchemyRaffleRepository(),
        organizer=current_app.config.get("MOTTO_ORGANIZER_NAME", ""),
    )
    return coordinator.run(initiator)
