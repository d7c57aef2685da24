"""
Feature flag and flag-audit repositories.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from bedflow.models.feature import FeatureFlag, FeatureFlagAudit
from bedflow.repositories.base import BaseRepository


class FeatureFlagRepository(BaseRepository[FeatureFlag]):
    def __init__(self, session: Session):
        super().__init__(FeatureFlag, session)

    def find_flag(self, tenant_id: str, feature_name: str) -> Optional[FeatureFlag]:
        return self._run(
            "find flag",
            lambda: self.query(tenant_id).filter(FeatureFlag.feature_name == feature_name).first(),
        )

    def list_for_tenant(self, tenant_id: str) -> List[FeatureFlag]:
        return self.find_by_criteria(tenant_id, order_by=[FeatureFlag.feature_name])


class FeatureFlagAuditRepository(BaseRepository[FeatureFlagAudit]):
    def __init__(self, session: Session):
        super().__init__(FeatureFlagAudit, session)

    def recent(self, tenant_id: str, feature_name: Optional[str] = None, limit: int = 50) -> List[FeatureFlagAudit]:
        """Audit entries newest first."""
        criteria = {"feature_name": feature_name} if feature_name else None
        return self.find_by_criteria(
            tenant_id,
            criteria,
            order_by=[FeatureFlagAudit.performed_at.desc(), FeatureFlagAudit.id.desc()],
            limit=limit,
        )
