"""Exception hierarchy for the storefront core.

Every error carries the HTTP status the web layer should answer with, so
route handlers can translate any ``StorefrontError`` uniformly.
"""

from __future__ import annotations


class StorefrontError(Exception):
    """Base exception for storefront operations."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


# ---------------------------------------------------------------------------
# Validation (400)
# ---------------------------------------------------------------------------


class ValidationError(StorefrontError):
    """Malformed or incomplete caller input."""

    status_code = 400


class CheckoutError(ValidationError):
    """Base for checkout rejections."""


class EmptyCart(CheckoutError):
    def __init__(self) -> None:
        super().__init__("Cart is empty.")


class MissingCustomerFields(CheckoutError):
    def __init__(self) -> None:
        super().__init__("Missing required customer information.")


class NoValidItems(CheckoutError):
    def __init__(self) -> None:
        super().__init__("Cart items are invalid.")


class MissingFields(ValidationError):
    """Required account fields were not supplied."""


class PasswordTooLong(ValidationError):
    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"Password must be at most {max_bytes} bytes.")


class SyncNotConfigured(ValidationError):
    """Origin URL or shared secret is missing for an import."""


class SyncRefused(ValidationError):
    """Import attempted from inside the hosted environment."""


# ---------------------------------------------------------------------------
# Authentication (401)
# ---------------------------------------------------------------------------


class AuthenticationError(StorefrontError):
    """Generic authentication failure. Never says which factor failed."""

    status_code = 401


class InvalidCredentials(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Invalid email or password.")


class Unauthorized(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Unauthorized")


class NotAuthenticated(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Not authenticated as admin.")


# ---------------------------------------------------------------------------
# Conflict (409)
# ---------------------------------------------------------------------------


class ConflictError(StorefrontError):
    status_code = 409


class DuplicateEmail(ConflictError):
    def __init__(self) -> None:
        super().__init__("An account with this email already exists.")


# ---------------------------------------------------------------------------
# Storage / sync
# ---------------------------------------------------------------------------


class StorageFailure(StorefrontError):
    """Backend unreachable, timed out, or rejected a write."""

    status_code = 503


class SyncError(StorefrontError):
    """Pulling the snapshot from the origin failed."""

    status_code = 502
