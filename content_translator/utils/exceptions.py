"""
Exceptions
==========
Error taxonomy for the translation pipeline.
"""
from typing import List, Optional


class TranslatorError(Exception):
    """Base class for every pipeline error."""

    pass


class ValidationError(TranslatorError):
    """
    Raised when a request is malformed. Always raised before any
    store access or external call is made.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class InvalidTransitionError(ValidationError):
    """Raised when an evaluation progress record cannot move to the requested status."""

    def __init__(self, language_code: str, current: str, target: str):
        self.language_code = language_code
        self.current = current
        self.target = target
        super().__init__([f"{language_code}: cannot move from '{current}' to '{target}'"])


class ExternalServiceError(TranslatorError):
    """Non-2xx or malformed response from the translation capability."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        rate_limited: bool = False
    ):
        super().__init__(message)
        self.status_code = status_code
        self.rate_limited = rate_limited


class PersistenceError(TranslatorError):
    """A write to the translation store failed."""

    pass


class StaleJobError(TranslatorError):
    """
    Raised for an in-progress evaluation whose liveness timestamp expired.
    Not a hard failure: the operator is expected to reset the record.
    """

    def __init__(self, language_code: str, minutes_stale: int):
        self.language_code = language_code
        self.minutes_stale = minutes_stale
        super().__init__(
            f"Evaluation for {language_code} has not advanced for {minutes_stale} minutes"
        )


class NotFoundError(TranslatorError):
    """The requested key, row or language does not exist."""

    pass
