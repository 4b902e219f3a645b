from __future__ import annotations

from ..errors import ResultNotFound, ResultsMissing
from ..models import RaffleStatus, normalize_name
from .repository import AssignmentRecord, RaffleRepository

COMPLETED_RESULTS_MISSING = "completed_results_missing"


def get_result(repository: RaffleRepository, participant: str) -> AssignmentRecord:
    name = normalize_name(participant)
    if repository.get_raffle_state() != RaffleStatus.COMPLETED:
        raise ResultNotFound("The raffle has not been run yet.")

    text = repository.get_assignment(name)
    if text is None:
        raise ResultNotFound()
    return AssignmentRecord(name, text)


def get_all_results(repository: RaffleRepository) -> list[AssignmentRecord]:
    if repository.get_raffle_state() != RaffleStatus.COMPLETED:
        return []

    results = repository.list_assignments()
    if not results:
        raise ResultsMissing()
    return results


def raffle_status(repository: RaffleRepository) -> str:
    """not_started, completed, or completed_results_missing."""
    status = repository.get_raffle_state()
    if status == RaffleStatus.COMPLETED and not repository.list_assignments():
        return COMPLETED_RESULTS_MISSING
    return status.value
