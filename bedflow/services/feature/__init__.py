from bedflow.services.feature.feature_flag_service import FeatureFlagFailurePolicy, FeatureFlagService

__all__ = ["FeatureFlagFailurePolicy", "FeatureFlagService"]
