"""
Error taxonomy for the moderation engine.

Every error carries a ``public_message`` that is safe to show to the caller.
Denials keep their internal ``reason`` for logging only, so callers cannot
learn which permission was missing or whether a passphrase was wrong.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all recoverable engine errors."""

    public_message = "request failed"

    def __init__(self, reason: str | None = None):
        self.reason = reason or self.public_message
        super().__init__(self.public_message)


class PermissionDenied(EngineError):
    """Role or ownership check failed."""

    public_message = "insufficient permission"


class InvalidSecret(PermissionDenied):
    """
    Supplied passphrase did not match.

    Presented to the caller exactly like PermissionDenied.
    """


class BannedIdentity(PermissionDenied):
    """Content creation blocked by an active ban."""

    public_message = "identity is banned"


class NotFound(EngineError):
    """Target does not exist or is soft-deleted."""

    public_message = "not found"


class InvalidState(EngineError):
    """Transition is not valid from the current status."""

    public_message = "invalid state transition"


class InvalidInput(EngineError):
    """Input failed format or range validation."""

    public_message = "invalid input"

    def __init__(self, reason: str | None = None):
        if reason:
            self.public_message = reason
        super().__init__(reason)
