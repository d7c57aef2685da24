"""
Per-tenant feature flags with a TTL cache and an audit trail.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bedflow.config.settings import Settings
from bedflow.core.exceptions import ErrorCode, RepositoryError, TransientStoreError, ValidationError
from bedflow.core.utils import Clock, utc_now
from bedflow.models.base.enums import BedManagementFeature
from bedflow.models.feature import FeatureFlag, FeatureFlagAudit
from bedflow.repositories.feature import FeatureFlagAuditRepository, FeatureFlagRepository
from bedflow.schemas.feature import FeatureFlagAuditEntry, FeatureFlagState
from bedflow.services.base.base_service import BaseService
from bedflow.services.base.feature_flag_cache import (
    FeatureFlagCache,
    InMemoryFeatureFlagCache,
    cache_key,
)

FeatureName = Union[BedManagementFeature, str]


class FeatureFlagFailurePolicy(str, Enum):
    """What ``is_feature_enabled`` answers when the flag store cannot be read."""

    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


class FeatureFlagService(BaseService):
    """
    Flag reads go through the cache; writes update the row, append one
    audit entry and invalidate the cache key after commit.

    A tenant with no row for a feature has it enabled.
    """

    def __init__(
        self,
        db_session: Session,
        cache: Optional[FeatureFlagCache] = None,
        failure_policy: Optional[FeatureFlagFailurePolicy] = None,
        clock: Clock = utc_now,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db_session, feature_flags=None, clock=clock, settings=settings)
        flag_settings = self.settings.feature_flags
        self.cache = cache if cache is not None else InMemoryFeatureFlagCache(ttl_seconds=flag_settings.FEATURE_FLAG_CACHE_TTL)
        self.failure_policy = failure_policy or FeatureFlagFailurePolicy(
            flag_settings.FEATURE_FLAG_FAILURE_POLICY
        )
        self.flag_repo = FeatureFlagRepository(db_session)
        self.flag_audit_repo = FeatureFlagAuditRepository(db_session)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def is_feature_enabled(self, tenant_id: str, feature: FeatureName) -> bool:
        """
        Whether ``feature`` is enabled for the tenant.

        Store errors are answered by ``failure_policy`` and logged at
        WARNING; the fallback answer is not cached.
        """
        feature = self._coerce_feature(feature)
        key = cache_key(tenant_id, feature.value)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        # A failed read must not leave the shared session's transaction aborted
        try:
            with self.savepoint():
                flag = self.flag_repo.find_flag(tenant_id, feature.value)
        except (TransientStoreError, RepositoryError, SQLAlchemyError) as e:
            fallback = self.failure_policy == FeatureFlagFailurePolicy.FAIL_OPEN
            self._logger.warning(
                f"Feature flag lookup failed for {key}; applying {self.failure_policy.value} "
                f"(enabled={fallback}): {e}",
                extra={"tenant_id": tenant_id, "feature": feature.value, "policy": self.failure_policy.value},
            )
            return fallback

        enabled = True if flag is None else bool(flag.enabled)
        self.cache.set(key, enabled)
        return enabled

    def get_all_features(self, tenant_id: str) -> List[FeatureFlagState]:
        """
        State of every feature, creating enabled rows for features the
        tenant has never configured.
        """
        with self.transaction():
            existing = {flag.feature_name: flag for flag in self.flag_repo.list_for_tenant(tenant_id)}
            now = self.clock()
            for feature in BedManagementFeature:
                if feature.value not in existing:
                    existing[feature.value] = self.flag_repo.add(
                        FeatureFlag(
                            tenant_id=tenant_id,
                            feature_name=feature.value,
                            enabled=True,
                            enabled_at=now,
                        )
                    )
        return [self._to_state(existing[feature.value]) for feature in BedManagementFeature]

    def get_audit_log(
        self,
        tenant_id: str,
        feature: Optional[FeatureName] = None,
        limit: int = 50,
    ) -> List[FeatureFlagAuditEntry]:
        """Audit entries for the tenant, newest first."""
        if limit < 1:
            raise ValidationError("limit must be positive", field="limit")
        feature_name = self._coerce_feature(feature).value if feature is not None else None
        entries = self.flag_audit_repo.recent(tenant_id, feature_name, limit)
        return [FeatureFlagAuditEntry.model_validate(entry) for entry in entries]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def enable_feature(self, tenant_id: str, feature: FeatureName, enabled_by: Optional[str] = None) -> FeatureFlagState:
        def _enable(flag: FeatureFlag, now) -> None:
            flag.enabled = True
            flag.enabled_at = now
            flag.enabled_by = enabled_by
            flag.disabled_reason = None

        return self._write(tenant_id, feature, "enabled", _enable, enabled_by)

    def disable_feature(
        self,
        tenant_id: str,
        feature: FeatureName,
        disabled_by: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> FeatureFlagState:
        """
        Disable a feature.

        Raises:
            ValidationError: If ``reason`` is empty
        """
        reason = self._require(reason, "reason")

        def _disable(flag: FeatureFlag, now) -> None:
            flag.enabled = False
            flag.disabled_at = now
            flag.disabled_by = disabled_by
            flag.disabled_reason = reason

        return self._write(tenant_id, feature, "disabled", _disable, disabled_by, reason)

    def update_configuration(
        self,
        tenant_id: str,
        feature: FeatureName,
        configuration: Dict[str, Any],
        updated_by: Optional[str] = None,
    ) -> FeatureFlagState:
        if not isinstance(configuration, dict):
            raise ValidationError("configuration must be a mapping", field="configuration")

        def _configure(flag: FeatureFlag, now) -> None:
            flag.configuration = dict(configuration)

        return self._write(tenant_id, feature, "configured", _configure, updated_by)

    def clear_cache(self, tenant_id: Optional[str] = None) -> None:
        self.cache.clear(tenant_id)
        self._logger.info(f"Feature flag cache cleared for {tenant_id or 'all tenants'}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _write(
        self,
        tenant_id: str,
        feature: FeatureName,
        action: str,
        mutate: Callable[[FeatureFlag, Any], None],
        performed_by: Optional[str],
        reason: Optional[str] = None,
    ) -> FeatureFlagState:
        feature = self._coerce_feature(feature)

        with self.transaction():
            now = self.clock()
            flag = self.flag_repo.find_flag(tenant_id, feature.value)
            if flag is None:
                previous_state = {"enabled": True, "configuration": None}
                flag = FeatureFlag(tenant_id=tenant_id, feature_name=feature.value, enabled=True)
                mutate(flag, now)
                flag.last_modified_by = performed_by
                self.flag_repo.add(flag)
            else:
                previous_state = flag.state()
                mutate(flag, now)
                flag.last_modified_by = performed_by
                self.flag_repo.flush()

            self.flag_audit_repo.add(
                FeatureFlagAudit(
                    tenant_id=tenant_id,
                    feature_name=feature.value,
                    action=action,
                    previous_state=previous_state,
                    new_state=flag.state(),
                    reason=reason,
                    performed_by=performed_by,
                    performed_at=now,
                )
            )

        self.cache.invalidate(cache_key(tenant_id, feature.value))
        self._logger.info(
            f"Feature {feature.value} {action} for tenant {tenant_id}",
            extra={"tenant_id": tenant_id, "feature": feature.value, "performed_by": performed_by},
        )
        return self._to_state(flag)

    @staticmethod
    def _coerce_feature(feature: FeatureName) -> BedManagementFeature:
        try:
            return BedManagementFeature(feature)
        except ValueError:
            raise ValidationError(
                f"Unknown feature '{feature}'",
                field="feature",
                error_code=ErrorCode.UNKNOWN_FEATURE,
                details={"valid_features": [f.value for f in BedManagementFeature]},
            ) from None

    @staticmethod
    def _to_state(flag: FeatureFlag) -> FeatureFlagState:
        return FeatureFlagState(
            feature_name=flag.feature_name,
            enabled=flag.enabled,
            configuration=flag.configuration,
            updated_at=flag.updated_at,
        )
