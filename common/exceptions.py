"""
TravelHub - Custom Exceptions
==============================
Business-level exceptions raised by the service layer.
main.py converts them to JSON responses in a single exception handler;
status_code is the HTTP status each one maps to.
"""

from fastapi import status


class TravelHubError(Exception):
    """Base exception for all business logic errors."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Request failed"):
        self.message = message
        super().__init__(self.message)


class InvalidCredentials(TravelHubError):
    """Unknown email or wrong password (deliberately indistinguishable)."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("Invalid credentials")


class DuplicateIdentity(TravelHubError):
    """Raised when registering an email that already exists."""

    def __init__(self):
        super().__init__("User already exists")


class InvalidToken(TravelHubError):
    """Missing, malformed, expired or forged bearer token."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class IdentityGone(TravelHubError):
    """Token is valid but its subject no longer exists."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("User no longer exists")


class Forbidden(TravelHubError):
    """Raised when the caller's role does not allow the operation."""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class NotFound(TravelHubError):
    """Raised when a requested resource doesn't exist."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, what: str = "Resource"):
        super().__init__(f"{what} not found")


class InvalidTarget(TravelHubError):
    """Cart item must reference exactly one of product / package."""


class InvalidReference(TravelHubError):
    """One or more referenced products do not exist."""


class ValidationFailed(TravelHubError):
    """Business-level validation (kind-specific required fields, etc)."""


class ProductInUse(TravelHubError):
    """Product is still bundled in at least one package."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, package_count: int):
        super().__init__(f"Product is part of {package_count} package(s)")
