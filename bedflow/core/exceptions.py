"""
Error types raised by the bedflow engines

Every engine operation raises one of these so the calling API layer can
map failures to responses without inspecting messages.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Machine-readable failure codes carried by every BedManagementError"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_ISOLATION_TYPE = "INVALID_ISOLATION_TYPE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    UNKNOWN_BARRIER = "UNKNOWN_BARRIER"
    UNKNOWN_FEATURE = "UNKNOWN_FEATURE"

    # Business logic errors
    FEATURE_DISABLED = "FEATURE_DISABLED"
    BED_UNAVAILABLE = "BED_UNAVAILABLE"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    TRANSIENT_STORE_ERROR = "TRANSIENT_STORE_ERROR"


class BedManagementError(Exception):
    """
    Root of the bedflow error tree.

    ``status_code`` is the HTTP status a caller would map the error to.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Payload shape an API layer returns for this error"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Engine Exceptions
# ========================================

class FeatureDisabledError(BedManagementError):
    """Raised when a gated capability is switched off for the tenant"""

    def __init__(self, feature: str, tenant_id: str):
        super().__init__(
            message=f"Feature '{feature}' is disabled for this tenant",
            error_code=ErrorCode.FEATURE_DISABLED,
            details={"feature": feature, "tenant_id": tenant_id},
            status_code=403
        )
        self.feature = feature
        self.tenant_id = tenant_id


class NotFoundError(BedManagementError):
    """Raised when a referenced bed, patient, admission or prediction is missing"""

    def __init__(self, resource_type: str, resource_id: Any = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with ID '{resource_id}' not found"
        super().__init__(
            message=message,
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id is not None else None},
            status_code=404
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(BedManagementError):
    """Raised for malformed input, unknown identifiers or illegal transitions"""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, error_code, details, 422)
        self.field = field


class ConflictError(BedManagementError):
    """Raised when a bed is no longer available at assignment time"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.BED_UNAVAILABLE, details, 409)


class TransientStoreError(BedManagementError):
    """Raised when the data store fails in a way that may succeed on retry"""

    def __init__(self, message: str = "Data store temporarily unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.TRANSIENT_STORE_ERROR, details, 503)


class RepositoryError(BedManagementError):
    """Raised when a repository operation fails"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


__all__ = [
    "ErrorCode",
    "BedManagementError",
    "FeatureDisabledError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "TransientStoreError",
    "RepositoryError",
]
