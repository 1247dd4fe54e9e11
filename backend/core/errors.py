"""
Error taxonomy for the relay.

Every failure raised while handling /edit is a RelayError subclass. The route
converts it into the JSON error envelope with the matching HTTP status, so a
failed request never takes the process down.
"""

from typing import Optional, Dict, Any

from models.relay import ProviderErrorKind, ProviderOutcome

RATE_LIMIT_ERROR = "OpenAI API quota or rate limit exceeded"


class RelayError(Exception):
    """Base class for errors surfaced to /edit callers."""

    status_code: int = 500

    def __init__(self, error: str, details: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(RelayError):
    """Bad or missing request input."""

    status_code = 400


class ConfigError(RelayError):
    """Deployment misconfiguration, e.g. the provider credential is absent."""

    status_code = 500

    def __init__(self, error: str, fix: Optional[str] = None):
        super().__init__(error)
        self.fix = fix

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.fix:
            body["fix"] = self.fix
        return body


class ProviderError(RelayError):
    """The provider call failed, or its result could not be persisted."""

    def __init__(self, error: str, details: Optional[str] = None, rate_limited: bool = False):
        super().__init__(RATE_LIMIT_ERROR if rate_limited else error, details)
        self.rate_limited = rate_limited

    @property
    def status_code(self) -> int:
        return 429 if self.rate_limited else 500

    @classmethod
    def from_outcome(cls, error: str, outcome: ProviderOutcome) -> "ProviderError":
        return cls(
            error,
            details=outcome.error,
            rate_limited=outcome.error_kind == ProviderErrorKind.RATE_LIMIT,
        )
