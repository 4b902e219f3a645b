"""Error taxonomy shared by the raffle services and the HTTP layer.

Every error carries the HTTP status the app-level handler answers with, so
views can let them propagate instead of translating each one.
"""

from __future__ import annotations


class MottoPartyError(RuntimeError):
    status_code = 500
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class Unauthorized(MottoPartyError):
    status_code = 403
    default_message = "Only the organizer can start the raffle."


class AlreadyCompleted(MottoPartyError):
    status_code = 409
    default_message = "The raffle has already been run."


class NoParticipants(MottoPartyError):
    status_code = 400
    default_message = "No registered participants to run the raffle for."


class NoSubmissions(MottoPartyError):
    status_code = 400
    default_message = "No mottos have been submitted yet."


class RepositoryUnavailable(MottoPartyError):
    status_code = 503
    default_message = "The data store could not be reached. Please try again later."


class ResultsMissing(MottoPartyError):
    """Raffle is marked completed but no assignments are stored.

    Only reachable through a store that lost data after the raffle committed;
    recovering requires an operator.
    """

    status_code = 500
    default_message = "The raffle is marked completed but its results are missing."


class ResultNotFound(MottoPartyError):
    status_code = 404
    default_message = "No raffle result found for this participant."


class SubmissionsClosed(MottoPartyError):
    status_code = 409
    default_message = "Submissions are closed because the raffle has been run."


class RegistrationClosed(MottoPartyError):
    status_code = 409
    default_message = "Registration is closed because the raffle has been run."


class InvalidSubmission(MottoPartyError):
    status_code = 400
    default_message = "Motto text is required."
