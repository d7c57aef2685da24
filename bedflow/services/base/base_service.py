"""
Base service class providing common functionality for all engines.
"""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bedflow.config.settings import Settings, get_settings
from bedflow.core.exceptions import (
    BedManagementError,
    ErrorCode,
    FeatureDisabledError,
    ValidationError,
)
from bedflow.core.logging import get_logger
from bedflow.core.utils import Clock, utc_now
from bedflow.models.base.enums import BedManagementFeature
from bedflow.repositories.audit import AuditLogRepository
from bedflow.repositories.base.base_repository import translate_db_error

if TYPE_CHECKING:
    from bedflow.services.feature.feature_flag_service import FeatureFlagService

TSchema = TypeVar("TSchema", bound=PydanticModel)


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger, clock and db session
    - Transaction management with rollback on any failure
    - Feature gate check
    - Audit entries written inside the caller's transaction
    """

    def __init__(
        self,
        db_session: Session,
        feature_flags: Optional["FeatureFlagService"] = None,
        clock: Clock = utc_now,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
            feature_flags: Flag service used to gate engine operations;
                ``None`` leaves the engine ungated
            clock: Returns the current naive-UTC time
            settings: Application settings (defaults to the cached settings)
        """
        self.db: Session = db_session
        self.feature_flags = feature_flags
        self.clock: Clock = clock
        self.settings: Settings = settings or get_settings()
        self.audit_repo = AuditLogRepository(db_session)
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Context manager for database transactions with automatic rollback.

        Yields:
            The database session

        Example:
            with self.transaction():
                self.bed_repo.claim_if_available(...)
                self._audit(...)
        """
        try:
            yield self.db
            self._commit()
        except BedManagementError:
            self._rollback()
            raise
        except SQLAlchemyError as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise translate_db_error(e, "transaction") from e
        except Exception as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise

    @contextmanager
    def savepoint(self):
        """
        Nested transaction inside the current one.

        A failure inside the block rolls back to the savepoint only and
        re-raises; work staged before the block is kept.
        """
        with self.db.begin_nested():
            yield self.db

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except SQLAlchemyError as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _ensure_feature_enabled(self, tenant_id: str, feature: BedManagementFeature) -> None:
        """
        Raise FeatureDisabledError when the tenant has the feature switched off.
        """
        if self.feature_flags is None:
            return
        if not self.feature_flags.is_feature_enabled(tenant_id, feature):
            self._logger.info(f"Feature {feature.value} disabled for tenant {tenant_id}")
            raise FeatureDisabledError(feature.value, tenant_id)

    def _validate(self, schema: Type[TSchema], data: Union[TSchema, Dict[str, Any]]) -> TSchema:
        """
        Coerce input into ``schema``, mapping pydantic errors to ValidationError.
        """
        if isinstance(data, schema):
            return data
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            errors = e.errors()
            field = ".".join(str(part) for part in errors[0]["loc"]) if errors and errors[0]["loc"] else None
            raise ValidationError(
                f"Invalid {schema.__name__}: {errors[0]['msg'] if errors else e}",
                field=field,
                details={"errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in errors]},
            ) from e

    @staticmethod
    def _require(value: Optional[str], field: str) -> str:
        if value is None or not str(value).strip():
            raise ValidationError(
                f"{field} is required",
                field=field,
                error_code=ErrorCode.MISSING_REQUIRED_FIELD,
            )
        return str(value).strip()

    # -------------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------------

    def _audit(
        self,
        tenant_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        performed_by: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Stage an audit entry; a failure here fails the enclosing transaction."""
        self.audit_repo.log(
            tenant_id=tenant_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            created_at=self.clock(),
            performed_by=performed_by,
            details=details,
        )
