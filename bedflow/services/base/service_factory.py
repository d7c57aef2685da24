"""
Service factory wiring the engines to one session, clock and flag service.
"""

from typing import Dict, Optional, Type, TypeVar

from redis import Redis
from sqlalchemy.orm import Session

from bedflow.config.redis import get_redis_client
from bedflow.config.settings import Settings, get_settings
from bedflow.core.logging import get_logger
from bedflow.core.utils import Clock, utc_now
from bedflow.services.base.base_service import BaseService
from bedflow.services.base.feature_flag_cache import (
    FeatureFlagCache,
    InMemoryFeatureFlagCache,
    RedisFeatureFlagCache,
)
from bedflow.services.bed import BedService
from bedflow.services.capacity import CapacityService
from bedflow.services.discharge import DischargeService
from bedflow.services.feature import FeatureFlagService
from bedflow.services.isolation import IsolationService
from bedflow.services.transfer import TransferService
from bedflow.services.turnover import TurnoverService

TService = TypeVar("TService", bound=BaseService)


class ServiceFactory:
    """
    Factory for the bed-management engines.

    Every engine built by one factory shares its session, clock, settings
    and a single FeatureFlagService, so a flag write made through
    ``feature_flags()`` is seen by every engine's gate at once.
    """

    def __init__(
        self,
        db_session: Session,
        redis_client: Optional[Redis] = None,
        clock: Clock = utc_now,
        settings: Optional[Settings] = None,
        cache: Optional[FeatureFlagCache] = None,
    ):
        """
        Initialize service factory.

        Args:
            db_session: SQLAlchemy database session
            redis_client: Client for the redis flag cache; created from
                settings when the redis backend is configured and none is given
            clock: Returns the current naive-UTC time
            settings: Application settings (defaults to the cached settings)
            cache: Explicit flag cache, overriding the configured backend
        """
        self.db = db_session
        self.redis_client = redis_client
        self.clock = clock
        self.settings = settings or get_settings()
        self._cache = cache
        self._logger = get_logger(self.__class__.__name__)

        self._service_cache: Dict[str, BaseService] = {}

    def _build_cache(self) -> FeatureFlagCache:
        if self._cache is not None:
            return self._cache
        flag_settings = self.settings.feature_flags
        if flag_settings.FEATURE_FLAG_CACHE_BACKEND == "redis":
            client = self.redis_client or get_redis_client(self.settings.redis)
            return RedisFeatureFlagCache(
                client,
                ttl_seconds=flag_settings.FEATURE_FLAG_CACHE_TTL,
                namespace=flag_settings.FEATURE_FLAG_CACHE_PREFIX,
            )
        return InMemoryFeatureFlagCache(ttl_seconds=flag_settings.FEATURE_FLAG_CACHE_TTL)

    def feature_flags(self) -> FeatureFlagService:
        """Get or create the shared feature flag service."""
        key = FeatureFlagService.__name__
        if key not in self._service_cache:
            self._service_cache[key] = FeatureFlagService(
                self.db,
                cache=self._build_cache(),
                clock=self.clock,
                settings=self.settings,
            )
            self._logger.debug("Created FeatureFlagService instance")
        return self._service_cache[key]

    def _engine(self, service_class: Type[TService]) -> TService:
        key = service_class.__name__
        if key not in self._service_cache:
            self._service_cache[key] = service_class(
                self.db,
                feature_flags=self.feature_flags(),
                clock=self.clock,
                settings=self.settings,
            )
            self._logger.debug(f"Created {key} instance")
        return self._service_cache[key]

    def isolation(self) -> IsolationService:
        return self._engine(IsolationService)

    def beds(self) -> BedService:
        return self._engine(BedService)

    def discharge(self) -> DischargeService:
        return self._engine(DischargeService)

    def transfer(self) -> TransferService:
        return self._engine(TransferService)

    def capacity(self) -> CapacityService:
        return self._engine(CapacityService)

    def turnover(self) -> TurnoverService:
        return self._engine(TurnoverService)

    def clear_cache(self) -> None:
        """Drop cached service instances."""
        count = len(self._service_cache)
        self._service_cache.clear()
        self._logger.info(f"Cleared {count} cached service instances")
