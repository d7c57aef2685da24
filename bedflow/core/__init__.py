from bedflow.core.exceptions import (
    BedManagementError,
    ConflictError,
    ErrorCode,
    FeatureDisabledError,
    NotFoundError,
    RepositoryError,
    TransientStoreError,
    ValidationError,
)
from bedflow.core.logging import get_logger, setup_logging, tenant_context
from bedflow.core.utils import Clock, utc_now

__all__ = [
    "BedManagementError",
    "ConflictError",
    "ErrorCode",
    "FeatureDisabledError",
    "NotFoundError",
    "RepositoryError",
    "TransientStoreError",
    "ValidationError",
    "get_logger",
    "setup_logging",
    "tenant_context",
    "Clock",
    "utc_now",
]
