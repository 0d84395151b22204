"""Exceptions raised by the quiz engine, storage layer and agents."""


class QuizError(Exception):
    """Base class for all adaptive quiz errors."""


class MissingProfile(QuizError):
    """No profile record exists for the authenticated identity."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Profile not found for user '{user_id}'")


class GenerationFailure(QuizError):
    """The text-generation collaborator failed or returned nothing usable."""


class FormatError(GenerationFailure):
    """Generated text did not contain a JSON object matching the expected shape."""


class PersistenceFailure(QuizError):
    """A read or write against the storage collaborator failed."""


class AccessDenied(QuizError):
    """The user is not allowed to read or write the requested record."""


class NotFound(QuizError):
    """The requested record does not exist."""


class SessionClosed(QuizError):
    """The quiz session has already been ended."""
