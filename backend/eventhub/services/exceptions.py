"""
Custom exceptions for the service layer.

Services raise these instead of HTTP errors; ``eventhub.main`` translates
them to responses (404, 400, 401, 403).
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError):
    """Raised when a resource is absent or soft-deleted while the filter is active."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found with id: '{identifier}'")


class BadRequestError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class UnauthenticatedError(ServiceError):
    """Raised when an operation needs an identity and none (or an invalid one) was presented."""

    def __init__(self, message: str = "Authentication is required"):
        super().__init__(message)


class UnauthorizedError(ServiceError):
    """Raised when an authenticated actor lacks permission for the operation."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)
