"""
Error taxonomy for the score bot.

Every error carries a `user_message`: the text the router sends back to the
actor (ephemeral). The exception message itself is for logs.
"""

from __future__ import annotations

from typing import Optional


SERVICE_UNAVAILABLE = "❌ Score service is unavailable right now. Please tell an admin."


class BotError(RuntimeError):
    user_message = "Something went wrong!"

    def __init__(self, message: str = "", user_message: Optional[str] = None) -> None:
        super().__init__(message or user_message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ConfigurationError(BotError):
    """Missing credentials / ids. Detail goes to the log, not to the user."""

    user_message = SERVICE_UNAVAILABLE


# ---------------------------
# Validation (retry the same step)
# ---------------------------
class ValidationError(BotError):
    user_message = "❌ Invalid input, please try again."

    def __init__(self, message: str = "", user_message: Optional[str] = None) -> None:
        # For validation errors the detail IS what the user has to fix.
        super().__init__(message, user_message if user_message is not None else (message or None))


class WrongChannel(ValidationError):
    pass


class MalformedStepId(ValidationError):
    user_message = "❌ This button is no longer valid. Start again with `/endgame`."

    def __init__(self, message: str = "") -> None:
        super().__init__(message, self.user_message)


class InvalidScore(ValidationError):
    pass


class InvalidSelection(ValidationError):
    pass


class StepOutOfOrder(ValidationError):
    pass


class StalePrompt(ValidationError):
    user_message = "❌ This prompt is out of date. Use the most recent one."

    def __init__(self, message: str = "") -> None:
        super().__init__(message, self.user_message)


# ---------------------------
# Session (restart required)
# ---------------------------
class SessionError(BotError):
    reason = "session"

    def __init__(self, session_id: str, message: str = "") -> None:
        super().__init__(message or f"{self.reason}: {session_id}")
        self.session_id = session_id


class SessionNotFound(SessionError):
    reason = "not_found"
    user_message = "⌛ This score entry has expired or does not exist. Start again with `/endgame`."


class SessionAlreadyCompleted(SessionError):
    reason = "already_completed"
    user_message = "✅ This game was already recorded. Use `/endgame` to log another one."


class SessionOwnerMismatch(SessionError):
    reason = "owner_mismatch"
    user_message = "🚫 Only the person who started this score entry can continue it."


# ---------------------------
# Backends
# ---------------------------
class PersistenceError(BotError):
    user_message = "❌ Could not reach the score sheet."


class PublicationError(BotError):
    user_message = "❌ Could not post the game summary."
