"""
Feature flag service, cache backends and engine gating.
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import OTHER_TENANT, TENANT
from bedflow.core.exceptions import ErrorCode, FeatureDisabledError, TransientStoreError, ValidationError
from bedflow.models.base.enums import BedManagementFeature
from bedflow.models.bed import Bed
from bedflow.services.base.feature_flag_cache import (
    InMemoryFeatureFlagCache,
    RedisFeatureFlagCache,
    cache_key,
)
from bedflow.services.feature import FeatureFlagFailurePolicy, FeatureFlagService

DISCHARGE = BedManagementFeature.DISCHARGE_READINESS


class TestFeatureFlagReads:
    """Reading flags through the cache."""

    def test_unconfigured_feature_is_enabled(self, factory):
        """A tenant with no flag row gets the feature."""
        assert factory.feature_flags().is_feature_enabled(TENANT, DISCHARGE) is True

    def test_accepts_feature_name_strings(self, factory):
        assert factory.feature_flags().is_feature_enabled(TENANT, "capacity_forecasting") is True

    def test_unknown_feature_is_rejected(self, factory):
        with pytest.raises(ValidationError) as exc:
            factory.feature_flags().is_feature_enabled(TENANT, "teleportation")
        assert exc.value.error_code == ErrorCode.UNKNOWN_FEATURE

    def test_get_all_features_creates_enabled_rows(self, factory):
        """Listing every feature materializes one enabled row per feature."""
        states = factory.feature_flags().get_all_features(TENANT)
        assert [s.feature_name for s in states] == list(BedManagementFeature)
        assert all(s.enabled for s in states)

    def test_injected_empty_cache_is_kept(self, db_session, settings, timer):
        shared = InMemoryFeatureFlagCache(timer=timer)
        assert len(shared) == 0

        service = FeatureFlagService(db_session, cache=shared, settings=settings)
        service.is_feature_enabled(TENANT, DISCHARGE)

        assert service.cache is shared
        assert shared.get(cache_key(TENANT, DISCHARGE.value)) is True


class TestFeatureFlagWrites:
    """Enable, disable and configure."""

    def test_disable_takes_effect_despite_cached_value(self, factory):
        """The cached 'enabled' answer is invalidated by the disable."""
        flags = factory.feature_flags()
        assert flags.is_feature_enabled(TENANT, DISCHARGE) is True

        flags.disable_feature(TENANT, DISCHARGE, disabled_by="admin-1", reason="Pilot paused")

        assert flags.is_feature_enabled(TENANT, DISCHARGE) is False

    def test_disable_is_scoped_to_tenant(self, factory):
        flags = factory.feature_flags()
        flags.disable_feature(TENANT, DISCHARGE, reason="Pilot paused")

        assert flags.is_feature_enabled(OTHER_TENANT, DISCHARGE) is True

    def test_clear_cache_drops_only_that_tenant(self, factory, flag_cache):
        flags = factory.feature_flags()
        flags.is_feature_enabled(TENANT, DISCHARGE)
        flags.is_feature_enabled(OTHER_TENANT, DISCHARGE)

        flags.clear_cache(TENANT)

        assert flag_cache.get(cache_key(TENANT, DISCHARGE.value)) is None
        assert flag_cache.get(cache_key(OTHER_TENANT, DISCHARGE.value)) is True

    def test_disable_requires_reason(self, factory):
        with pytest.raises(ValidationError) as exc:
            factory.feature_flags().disable_feature(TENANT, DISCHARGE, reason="  ")
        assert exc.value.error_code == ErrorCode.MISSING_REQUIRED_FIELD

    def test_reenable_clears_reason(self, factory, clock):
        flags = factory.feature_flags()
        flags.disable_feature(TENANT, DISCHARGE, reason="Pilot paused")
        clock.advance(minutes=5)
        state = flags.enable_feature(TENANT, DISCHARGE, enabled_by="admin-2")

        assert state.enabled is True
        assert flags.is_feature_enabled(TENANT, DISCHARGE) is True

    def test_every_write_is_audited_newest_first(self, factory, clock):
        flags = factory.feature_flags()
        flags.disable_feature(TENANT, DISCHARGE, disabled_by="admin-1", reason="Pilot paused")
        clock.advance(minutes=1)
        flags.update_configuration(TENANT, DISCHARGE, {"min_score": 85}, updated_by="admin-1")
        clock.advance(minutes=1)
        flags.enable_feature(TENANT, DISCHARGE, enabled_by="admin-1")

        entries = flags.get_audit_log(TENANT, DISCHARGE)

        assert [e.action for e in entries] == ["enabled", "configured", "disabled"]
        disabled = entries[-1]
        assert disabled.previous_state == {"enabled": True, "configuration": None}
        assert disabled.new_state["enabled"] is False
        assert disabled.reason == "Pilot paused"

    def test_configuration_must_be_a_mapping(self, factory):
        with pytest.raises(ValidationError):
            factory.feature_flags().update_configuration(TENANT, DISCHARGE, ["not", "a", "dict"])


class TestFailurePolicy:
    """Answers when the flag store cannot be read."""

    @pytest.fixture
    def broken_store(self, monkeypatch):
        def _raise(*args, **kwargs):
            raise TransientStoreError("database unreachable")

        def apply(service: FeatureFlagService):
            monkeypatch.setattr(service.flag_repo, "find_flag", _raise)
            return service

        return apply

    def test_fail_open_enables(self, db_session, clock, settings, flag_cache, broken_store):
        service = broken_store(
            FeatureFlagService(
                db_session,
                cache=flag_cache,
                failure_policy=FeatureFlagFailurePolicy.FAIL_OPEN,
                clock=clock,
                settings=settings,
            )
        )
        assert service.is_feature_enabled(TENANT, DISCHARGE) is True

    def test_failed_lookup_rolls_back_to_savepoint(self, db_session, clock, settings, flag_cache, monkeypatch, build):
        """Work staged before the lookup survives; work inside it is undone."""
        medical = build.department("Medical")
        db_session.add(Bed(tenant_id=TENANT, department_id=medical.id, bed_number="101"))
        db_session.flush()
        service = FeatureFlagService(db_session, cache=flag_cache, clock=clock, settings=settings)

        def _fail_midway(*args, **kwargs):
            db_session.add(Bed(tenant_id=TENANT, department_id=medical.id, bed_number="102"))
            db_session.flush()
            raise TransientStoreError("connection reset")

        monkeypatch.setattr(service.flag_repo, "find_flag", _fail_midway)

        assert service.is_feature_enabled(TENANT, DISCHARGE) is True
        assert not db_session.in_nested_transaction()
        numbers = [bed.bed_number for bed in db_session.query(Bed).filter(Bed.tenant_id == TENANT)]
        assert numbers == ["101"]

    def test_fail_closed_disables(self, db_session, clock, settings, flag_cache, broken_store):
        service = broken_store(
            FeatureFlagService(
                db_session,
                cache=flag_cache,
                failure_policy=FeatureFlagFailurePolicy.FAIL_CLOSED,
                clock=clock,
                settings=settings,
            )
        )
        assert service.is_feature_enabled(TENANT, DISCHARGE) is False

    def test_fallback_answer_is_not_cached(self, db_session, clock, settings, flag_cache, broken_store):
        service = broken_store(
            FeatureFlagService(
                db_session,
                cache=flag_cache,
                failure_policy=FeatureFlagFailurePolicy.FAIL_CLOSED,
                clock=clock,
                settings=settings,
            )
        )
        service.is_feature_enabled(TENANT, DISCHARGE)
        assert flag_cache.get(cache_key(TENANT, DISCHARGE.value)) is None


class TestInMemoryCache:
    def test_entries_expire_after_ttl(self, timer):
        cache = InMemoryFeatureFlagCache(ttl_seconds=60, timer=timer)
        cache.set("t:f", True)

        timer.advance(59)
        assert cache.get("t:f") is True

        timer.advance(1)
        assert cache.get("t:f") is None

    def test_clear_by_tenant(self, timer):
        cache = InMemoryFeatureFlagCache(timer=timer)
        cache.set(cache_key("a", "f1"), True)
        cache.set(cache_key("a", "f2"), False)
        cache.set(cache_key("b", "f1"), True)

        cache.clear("a")

        assert len(cache) == 1
        assert cache.get(cache_key("b", "f1")) is True


class FlakyRedis:
    """Minimal redis client whose calls all fail."""

    def get(self, key):
        raise RedisConnectionError("connection refused")

    def set(self, key, value, ex=None):
        raise RedisConnectionError("connection refused")

    def delete(self, *keys):
        raise RedisConnectionError("connection refused")


class TestRedisCache:
    def test_read_failure_is_a_miss(self):
        cache = RedisFeatureFlagCache(FlakyRedis())
        assert cache.get("t:f") is None

    def test_write_failure_is_swallowed(self):
        RedisFeatureFlagCache(FlakyRedis()).set("t:f", True)

    def test_invalidate_failure_raises(self):
        with pytest.raises(TransientStoreError):
            RedisFeatureFlagCache(FlakyRedis()).invalidate("t:f")


class TestEngineGating:
    """Engines built by the factory share one flag service."""

    def test_disabled_feature_blocks_engine(self, factory):
        factory.feature_flags().disable_feature(TENANT, DISCHARGE, reason="Pilot paused")

        with pytest.raises(FeatureDisabledError) as exc:
            factory.discharge().get_discharge_ready_patients(TENANT)
        assert exc.value.feature == DISCHARGE.value
        assert exc.value.error_code == ErrorCode.FEATURE_DISABLED

    def test_other_engines_unaffected(self, factory, build):
        build.department("ICU")
        factory.feature_flags().disable_feature(TENANT, DISCHARGE, reason="Pilot paused")

        plan = factory.capacity().assess_surge_capacity(TENANT, "ICU")
        assert plan.unit == "ICU"

    def test_factory_reuses_instances(self, factory):
        assert factory.transfer() is factory.transfer()
        assert factory.transfer().feature_flags is factory.feature_flags()
