"""Metric catalog exception hierarchy."""

from typing import Any


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    status_code = 400

    def __init__(self, message: str = "", code: str = "CATALOG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "detail": ""}


class ValidationError(CatalogError):
    """Raised when a field is missing/malformed or the expression fails validation."""

    status_code = 422

    def __init__(self, message: str = "Validation failed", errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message, code="VALIDATION_FAILED")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "detail": "; ".join(self.errors)}


class ConflictError(CatalogError):
    """Raised on a duplicate code or an edit outside DRAFT."""

    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message, code="CONFLICT")


class NotFoundError(CatalogError):
    """Raised when an id is unknown or outside the caller's organization."""

    status_code = 404

    def __init__(self, message: str = "Metric not found"):
        super().__init__(message, code="NOT_FOUND")


class PermissionDeniedError(CatalogError):
    """Raised when a capability check fails."""

    status_code = 403

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, code="PERMISSION_DENIED")


class StateError(CatalogError):
    """Raised on an invalid lifecycle transition or a bind to a non-published metric."""

    status_code = 409

    def __init__(self, message: str = "Invalid state", status: str = ""):
        self.status = status
        super().__init__(message, code="INVALID_STATE")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "detail": f"status={self.status}"}


class InUseError(CatalogError):
    """Raised when a metric with active usage is deleted without force."""

    status_code = 409

    def __init__(self, message: str = "Metric in use", usage_count: int = 0):
        self.usage_count = usage_count
        super().__init__(message, code="IN_USE")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "detail": f"usage_count={self.usage_count}"}
