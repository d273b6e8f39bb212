"""Error taxonomy shared by every service.

Each error carries the HTTP status and a machine-readable code so the
transport layer can render it without inspecting the message.
"""

from __future__ import annotations


class AdvisorError(Exception):
    """Base class for service errors."""

    status_code = 500
    code = "internal_error"
    # Shown to HTTP clients instead of the message when set.
    public_message: str | None = None


class InvalidInput(AdvisorError):
    """Raised when a required field is missing or has the wrong shape."""

    status_code = 400
    code = "invalid_input"


class DuplicateUser(AdvisorError):
    """Raised when signing up with a username that already exists."""

    status_code = 400
    code = "duplicate_user"


class InvalidCredentials(AdvisorError):
    """Raised for an unknown username or a wrong password (indistinguishable)."""

    status_code = 400
    code = "invalid_credentials"


class NotFound(AdvisorError):
    """Raised when no user backs the given username."""

    status_code = 404
    code = "not_found"


class Unauthenticated(AdvisorError):
    """Raised when a bearer token is missing, malformed, tampered or expired."""

    status_code = 401
    code = "unauthenticated"


class MissingPercentage(AdvisorError):
    """Raised when a recommendation is requested without a numeric percentage."""

    status_code = 400
    code = "missing_percentage"


class MalformedAiResponse(AdvisorError):
    """Raised when the model output does not parse as JSON."""

    status_code = 502
    code = "malformed_ai_response"


class InvalidAiStructure(AdvisorError):
    """Raised when parsed model output does not match the recommendation schema."""

    status_code = 502
    code = "invalid_ai_structure"


class ProviderError(AdvisorError):
    """Raised when the LLM provider call fails (timeout, network, non-2xx)."""

    status_code = 502
    code = "provider_error"
    public_message = "AI request failed"


class PersistenceError(AdvisorError):
    """Raised when the user store cannot be written."""

    status_code = 500
    code = "persistence_error"
    public_message = "Could not save data"
