"""
Exception hierarchy for the Emotion Journal service.

Each exception carries a client-safe message and the HTTP status it maps to.
Handlers registered in ``server.create_app`` turn them into ``{"error": ...}``
responses, so routes and stores raise instead of building error payloads.

    JournalError (base)                → 500
    ├── MissingFieldError              → 400
    ├── InvalidFieldError              → 400
    ├── ConflictError                  → 400
    │   └── EmailAlreadyRegisteredError
    ├── NotFoundError                  → 404
    └── StorageError                   → 500
"""

from collections.abc import Sequence


class JournalError(Exception):
    """Base exception for all application errors."""

    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        self.message = message
        super().__init__(message)


class MissingFieldError(JournalError):
    """A required body field or query parameter was absent, null or empty."""

    status_code = 400

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = list(fields)
        joined = ", ".join(self.fields)
        super().__init__(f"{joined[:1].upper()}{joined[1:]} required")


class InvalidFieldError(JournalError):
    """A field was present but could not be accepted."""

    status_code = 400

    def __init__(self, fields: Sequence[str], message: str | None = None) -> None:
        self.fields = list(fields)
        super().__init__(message or f"Invalid value for: {', '.join(self.fields)}")


class ConflictError(JournalError):
    """A uniqueness constraint would be violated."""

    status_code = 400


class EmailAlreadyRegisteredError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Email already registered")


class NotFoundError(JournalError):
    """A referenced record does not exist."""

    status_code = 404

    def __init__(self, resource: str = "Record") -> None:
        self.resource = resource
        super().__init__(f"{resource} not found")


class StorageError(JournalError):
    """
    The database failed to complete an operation.

    The operation name is kept for logging; clients only see a generic message.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__("Storage operation failed")


class ConfigurationError(ValueError):
    """Raised at startup when required settings are missing."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = list(problems)
        super().__init__(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {problem}" for problem in self.problems)
        )
