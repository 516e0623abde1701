"""
Domain error taxonomy.

Services raise these; the HTTP layer turns them into the response envelope
using ``status_code`` and ``message``. Messages are safe to show to clients.
"""

from typing import Any, Dict, List, Optional


class TrackerError(Exception):
    """Base class for every error the API reports deliberately."""

    status_code: int = 500
    default_message: str = "Unexpected server error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class AuthError(TrackerError):
    """Missing, malformed or expired credential."""

    status_code = 401
    default_message = "Not authenticated"

    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    INVALID_CREDENTIALS = "invalid_credentials"

    _messages = {
        MISSING_TOKEN: "No token, authorization denied",
        INVALID_TOKEN: "Invalid token",
        EXPIRED_TOKEN: "Token expired",
        INVALID_CREDENTIALS: "Invalid username or password",
    }

    def __init__(self, kind: str = MISSING_TOKEN, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or self._messages.get(kind, self.default_message))


class ValidationError(TrackerError):
    status_code = 400
    default_message = "Validation error"


class NotFoundError(TrackerError):
    """
    The record does not exist or belongs to another user.

    Both cases produce the same error so that ids owned by other users
    cannot be guessed at.
    """

    status_code = 404
    default_message = "Not found"

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} not found")


class InvalidReferenceError(TrackerError):
    status_code = 400
    default_message = "Invalid project ID"


class ConflictError(TrackerError):
    status_code = 409
    default_message = "Conflict"
