"""
Shared data models and errors for the relay.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RelayRequest:
    contents: list[Any]
    model: str
    key_selection: str | None = None
    custom_key: str | None = None
    # Optional generateContent fields forwarded untouched
    extra_fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CredentialResolution:
    api_key: str = field(repr=False)
    source_name: str  # "CUSTOM_USER_KEY" | pool selector name | "DEFAULT_FALLBACK"


class RequestValidationError(ValueError):
    """The inbound request is malformed or incomplete."""


class ConfigurationError(RuntimeError):
    """The server is missing required configuration."""


class CredentialError(RuntimeError):
    """No usable credential could be resolved."""


class UpstreamError(Exception):
    """A failed call to the generative-text API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"[{self.status_code}] {self.message}"


class EmptyCandidatesError(UpstreamError):
    """Upstream answered 200 but without usable candidate text."""

    def __init__(self, message: str = "API returned empty content or no candidates.") -> None:
        super().__init__(message, status_code=200)


class RetryExhaustedError(Exception):
    """Raised when the retry loop gives up."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(
            f"Failed to get a response after {attempts} attempts. Error: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error
