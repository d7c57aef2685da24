from bedflow.services.base.base_service import BaseService
from bedflow.services.base.feature_flag_cache import (
    FeatureFlagCache,
    InMemoryFeatureFlagCache,
    RedisFeatureFlagCache,
    cache_key,
)

__all__ = [
    "BaseService",
    "FeatureFlagCache",
    "InMemoryFeatureFlagCache",
    "RedisFeatureFlagCache",
    "cache_key",
]
