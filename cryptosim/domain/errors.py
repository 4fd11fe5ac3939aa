"""
Base domain errors shared by every bounded context.

Each context subclasses these in its own ``errors`` module.
They are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class DomainError(Exception):
    """Base error for all domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class EntityNotFoundError(DomainError):
    """Raised when a record addressed by id or key does not exist."""

    def __init__(self, entity: str, key: str) -> None:
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class ConflictError(DomainError):
    """Raised when a write would violate a uniqueness rule."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"{field} already in use: {value}")
        self.field = field
        self.value = value


class BusinessRuleError(DomainError):
    """Raised when a request is well-formed but breaks a business rule."""


class AuthenticationError(DomainError):
    """Raised when credentials or tokens cannot be verified."""


class AccessDeniedError(DomainError):
    """Raised when an authenticated caller may not perform an action."""


class UpstreamServiceError(DomainError):
    """Raised when an external data provider fails or is unreachable."""

    def __init__(self, service: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"{service} unavailable: {reason}")
        self.service = service
        self.reason = reason
        self.status_code = status_code


class InvalidUploadError(DomainError):
    """Raised when an uploaded file is rejected."""

    def __init__(self, reason: str, too_large: bool = False) -> None:
        super().__init__(reason)
        self.too_large = too_large
