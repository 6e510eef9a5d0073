"""
Application error taxonomy.

Services raise these; app.main turns them into the JSON envelope
``{"success": false, "message": ..., "errors"?: [...], ...details}``.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base class for all handled application errors."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        errors: Optional[list[str]] = None,
        details: Optional[dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.errors = errors
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        body.update(self.details)
        return body


class ValidationError(AppError):
    """Request is structurally invalid; ``errors`` lists every violated rule."""

    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Request conflicts with stored state (duplicate purchase, total mismatch)."""

    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class CouponError(AppError):
    status_code = 400


class InvalidCouponError(CouponError):
    def __init__(self, message: str = "Invalid or inactive coupon code."):
        super().__init__(message)


class CouponExpiredError(CouponError):
    def __init__(self, message: str = "Coupon code has expired."):
        super().__init__(message)


class CouponUsageExceededError(CouponError):
    def __init__(self, message: str = "Coupon code usage limit exceeded."):
        super().__init__(message)


class ExternalServiceError(AppError):
    """An outbound call (push gateway, SMS) failed."""

    status_code = 502
