"""Exception hierarchy for the people filter."""

from typing import Any


class PeopleFilterError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PeopleFilterError):
    """Missing or invalid input detected before any processing starts."""


class ModelError(PeopleFilterError):
    """A language-model exchange did not produce a usable answer."""


class ModelUnavailableError(ModelError):
    """Transport, authentication or timeout failure while calling the model."""


class ModelProtocolError(ModelError):
    """The model replied, but not in the shape the caller asked for."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class VerificationFailed(PeopleFilterError):
    """Raised after a run when the verifier failed for one or more candidates.

    Every other candidate was still processed; ``results`` holds what survived
    and ``failures`` pairs each failed candidate with its error.
    """

    def __init__(
        self,
        failures: list[tuple[dict[str, str], ModelError]],
        results: list[Any],
    ) -> None:
        super().__init__(f"Verification failed for {len(failures)} candidate(s)")
        self.failures = failures
        self.results = results
