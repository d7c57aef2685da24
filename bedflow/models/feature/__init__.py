from bedflow.models.feature.feature_flag import FeatureFlag, FeatureFlagAudit

__all__ = ["FeatureFlag", "FeatureFlagAudit"]
