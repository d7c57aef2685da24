from bedflow.repositories.feature.feature_flag_repository import (
    FeatureFlagAuditRepository,
    FeatureFlagRepository,
)

__all__ = ["FeatureFlagAuditRepository", "FeatureFlagRepository"]
