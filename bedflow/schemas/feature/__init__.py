from bedflow.schemas.feature.feature_flag import FeatureFlagAuditEntry, FeatureFlagState

__all__ = ["FeatureFlagAuditEntry", "FeatureFlagState"]
