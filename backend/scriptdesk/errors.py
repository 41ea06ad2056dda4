"""
Error taxonomy shared by the service layer and the HTTP API.

- NotFoundError: referenced Script/Folder/Profile/Style id does not exist
- IllegalTransitionError: pipeline precondition not met, or a concurrent
  actor won the compare-and-swap
- AuthorizationError: actor's role or identity fails the eligibility rule
- ProviderExhaustedError: every configured AI provider failed
- ValidationError: malformed structured output or a forbidden patch
- MetricsSourceError: the external video statistics source failed
"""
from __future__ import annotations


class ScriptDeskError(Exception):
    """Base class for errors that are shown to the user as a message."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ScriptDeskError):
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id: str) -> "NotFoundError":
        return cls(f"{entity} {entity_id} not found")


class IllegalTransitionError(ScriptDeskError):
    status_code = 409


class AuthorizationError(ScriptDeskError):
    status_code = 403


class ProviderExhaustedError(ScriptDeskError):
    """Raised after every provider in the fallback order has failed."""

    status_code = 502

    def __init__(self, last_error: str | None, attempts: list[tuple[str, str]] | None = None):
        self.last_error = last_error or "Unknown error"
        self.attempts = attempts or []
        super().__init__(f"All AI providers failed. Last error: {self.last_error}")


class ValidationError(ScriptDeskError):
    status_code = 422


class MetricsSourceError(ScriptDeskError):
    status_code = 502
