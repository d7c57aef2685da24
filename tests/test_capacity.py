"""
Capacity forecasting engine.
"""

from datetime import date, datetime, timedelta

import pytest

from conftest import TENANT
from bedflow.core.exceptions import NotFoundError, ValidationError
from bedflow.models.base.enums import BedManagementFeature, BedStatus, ConfidenceLevel
from bedflow.models.capacity import OccupancySnapshot
from bedflow.services.capacity import classify_trend, forecast_factors, occupancy_percent


@pytest.fixture
def capacity(factory):
    return factory.capacity()


def stock_unit(build, name, available=0, occupied=0, maintenance=0, isolation_maintenance=0):
    unit = build.department(name)
    number = 100
    for status, count, isolation in (
        (BedStatus.AVAILABLE, available, False),
        (BedStatus.OCCUPIED, occupied, False),
        (BedStatus.MAINTENANCE, maintenance, False),
        (BedStatus.MAINTENANCE, isolation_maintenance, True),
    ):
        for _ in range(count):
            number += 1
            build.bed(
                unit,
                str(number),
                status=status.value,
                isolation_capable=isolation,
                isolation_type="contact" if isolation else None,
            )
    return unit


def snapshot(build, unit, day, rate):
    return build.add(
        OccupancySnapshot(
            department_id=unit.id,
            snapshot_date=day,
            occupied_beds=int(rate // 10),
            total_beds=10,
            occupancy_rate=rate,
            recorded_at=datetime.combine(day, datetime.min.time()),
        )
    )


def quiet_history(build, unit):
    """One recent admission, so expected admissions round to zero instead of the default rate."""
    return build.admission(build.patient(), department_id=unit.id, location=unit.name)


class TestHelpers:
    def test_occupancy_percent(self):
        assert occupancy_percent(9, 10) == 90.0
        assert occupancy_percent(2, 3) == 66.7
        assert occupancy_percent(4, 0) == 0.0

    @pytest.mark.parametrize(
        "values, trend",
        [
            ([], "stable"),
            ([70.0], "stable"),
            ([60.0, 70.0, 80.0, 90.0], "increasing"),
            ([50.0, 50.0, 40.0, 40.0], "decreasing"),
            ([50.0, 52.0], "stable"),
        ],
    )
    def test_classify_trend(self, values, trend):
        assert classify_trend(values) == trend

    def test_weekend_factor(self):
        saturday_night = datetime(2024, 3, 9, 22, 0)
        assert forecast_factors(95.0, saturday_night) == [
            "High occupancy expected - near capacity",
            "Weekend - typically lower admission rates",
        ]


class TestPredictCapacity:
    def test_scheduled_discharge_lowers_occupancy(self, capacity, factory, build, clock):
        medical = stock_unit(build, "Medical", available=4, occupied=6)
        patient = build.patient()
        admission = build.discharge_plan(build.admission(patient, department_id=medical.id, location="Medical"))
        factory.discharge().predict_discharge_readiness(TENANT, patient.id, admission.id)

        forecasts = capacity.predict_capacity(TENANT, "Medical", hours=24)

        assert [f.forecast_date for f in forecasts] == [clock() + timedelta(hours=h) for h in (6, 12, 18, 24)]
        assert [f.predicted_occupancy for f in forecasts] == [5, 5, 5, 5]
        assert forecasts[0].occupancy_rate == 50.0
        assert forecasts[0].predicted_available == 5
        assert forecasts[0].total_capacity == 10
        assert all(f.confidence_level == ConfidenceLevel.LOW for f in forecasts)
        # 16:00 on a Wednesday
        assert forecasts[0].factors == ["Business hours - higher discharge activity expected"]
        assert forecasts[1].factors == []

    def test_default_admission_rate_without_history(self, capacity, build):
        stock_unit(build, "Medical", available=6, occupied=4)

        forecasts = capacity.predict_capacity(TENANT, "Medical", hours=24)

        assert forecasts[0].predicted_occupancy == 5
        assert forecasts[-1].predicted_occupancy == 9
        assert "Moderate-high occupancy expected" in forecasts[-1].factors

    def test_maintenance_beds_are_not_capacity(self, capacity, build):
        stock_unit(build, "Medical", available=2, occupied=2, maintenance=4)

        assert capacity.predict_capacity(TENANT, "Medical")[0].total_capacity == 4

    @pytest.mark.parametrize("hours", [0, 12, 36, 96])
    def test_unsupported_horizon(self, capacity, build, hours):
        stock_unit(build, "Medical", available=1)

        with pytest.raises(ValidationError):
            capacity.predict_capacity(TENANT, "Medical", hours=hours)

    def test_unknown_unit(self, capacity):
        with pytest.raises(NotFoundError):
            capacity.predict_capacity(TENANT, "Cardiology")

    def test_history_raises_near_term_confidence(self, capacity, build, clock):
        medical = stock_unit(build, "Medical", available=5, occupied=5)
        quiet_history(build, medical)
        for days_ago in range(1, 62):
            snapshot(build, medical, clock().date() - timedelta(days=days_ago), 50.0)

        levels = [f.confidence_level for f in capacity.predict_capacity(TENANT, "Medical", hours=72)]

        assert levels == [ConfidenceLevel.HIGH] * 4 + [ConfidenceLevel.MEDIUM] * 4 + [ConfidenceLevel.LOW] * 4


class TestSeasonalPatterns:
    def test_groups_by_month(self, capacity, build):
        medical = stock_unit(build, "Medical", available=1)
        for day, rate in ((5, 60.0), (6, 70.0), (7, 80.0), (8, 90.0)):
            snapshot(build, medical, date(2024, 2, day), rate)
        snapshot(build, medical, date(2024, 3, 4), 50.0)

        february, march = capacity.analyze_seasonal_patterns(TENANT, "Medical")

        assert february.period == "February 2024"
        assert february.average_occupancy == 75.0
        assert february.peak_days == ["Thursday", "Wednesday", "Tuesday"]
        assert february.low_days == ["Wednesday", "Tuesday", "Monday"]
        assert february.trend == "increasing"
        assert march.period == "March 2024"
        assert march.peak_days == ["Monday"]
        assert march.trend == "stable"

    def test_no_history(self, capacity, build):
        stock_unit(build, "Medical", available=1)

        assert capacity.analyze_seasonal_patterns(TENANT, "Medical") == []

    def test_months_must_be_positive(self, capacity, build):
        stock_unit(build, "Medical", available=1)

        with pytest.raises(ValidationError):
            capacity.analyze_seasonal_patterns(TENANT, "Medical", months=0)


class TestStaffingRecommendations:
    def test_icu_ratios_per_shift(self, capacity, build, clock):
        icu = stock_unit(build, "ICU", available=2, occupied=8)
        quiet_history(build, icu)
        target = clock() + timedelta(hours=6)

        day, evening, night = capacity.generate_staffing_recommendations(TENANT, "ICU", target)

        assert (day.shift, evening.shift, night.shift) == ("day", "evening", "night")
        assert (day.recommended_nurses, day.recommended_doctors, day.recommended_support_staff) == (4, 1, 2)
        # ceil(8 * 0.8) = 7 patients overnight
        assert night.recommended_nurses == 4
        assert night.reasoning[0] == "Predicted 7 patients for night shift"
        assert day.patient_to_nurse_ratio == 2
        assert day.reasoning == [
            "Predicted 8 patients for day shift",
            "Target patient-to-nurse ratio: 1:2",
            "Occupancy rate: 80.0%",
            "Day shift requires full staffing for procedures and discharges",
        ]
        assert day.date == target

    def test_high_occupancy_note(self, capacity, build, clock):
        medical = stock_unit(build, "Medical", available=1, occupied=9)
        quiet_history(build, medical)

        recommendations = capacity.generate_staffing_recommendations(TENANT, "Medical", clock() + timedelta(hours=30))

        assert all("High occupancy - consider additional staff" in r.reasoning for r in recommendations)
        assert recommendations[0].recommended_nurses == 2


class TestSurgeCapacity:
    def test_activated(self, capacity, build):
        stock_unit(build, "ICU", available=1, occupied=9, maintenance=2, isolation_maintenance=1)

        plan = capacity.assess_surge_capacity(TENANT, "ICU")

        assert plan.current_level == 90.0
        assert plan.surge_activated is True
        assert plan.surge_status == "activated"
        assert plan.estimated_activation_time == "Immediate"
        assert plan.additional_beds_available == 2
        assert plan.resource_requirements.staff == 1
        assert "2 ventilators" in plan.resource_requirements.equipment
        assert plan.resource_requirements.supplies[0] == "6 sets of linens"
        assert plan.recommendations[1] == "Activate 2 additional beds"

    def test_warning(self, capacity, build):
        stock_unit(build, "Medical", available=2, occupied=8)

        plan = capacity.assess_surge_capacity(TENANT, "Medical")

        assert plan.surge_activated is False
        assert plan.surge_status == "warning"
        assert plan.estimated_activation_time == "2-4 hours"
        assert plan.recommendations[0] == "WARNING: Approaching surge capacity threshold"

    def test_normal(self, capacity, build):
        stock_unit(build, "Medical", available=5, occupied=5)

        plan = capacity.assess_surge_capacity(TENANT, "Medical")

        assert plan.surge_status == "normal"
        assert plan.resource_requirements.staff == 0
        assert not any("ventilators" in item for item in plan.resource_requirements.equipment)

    def test_empty_unit(self, capacity, build):
        build.department("Medical")

        assert capacity.assess_surge_capacity(TENANT, "Medical").current_level == 0.0


class TestOccupancySnapshots:
    def test_same_day_is_overwritten(self, capacity, build, clock):
        medical = build.department("Medical")
        build.bed(medical, "101", status=BedStatus.OCCUPIED.value)
        build.bed(medical, "102", status=BedStatus.OCCUPIED.value)
        open_bed = build.bed(medical, "103")
        build.bed(medical, "104", status=BedStatus.MAINTENANCE.value)

        first = capacity.record_occupancy_snapshot(TENANT, "Medical")
        open_bed.status = BedStatus.OCCUPIED.value
        build.session.commit()
        second = capacity.record_occupancy_snapshot(TENANT, "Medical")

        assert first.occupancy_rate == 66.7
        assert second.occupancy_rate == 100.0
        assert second.snapshot_date == clock().date()
        rows = capacity.snapshot_repo.find_since(TENANT, medical.id, clock().date())
        assert len(rows) == 1
        assert rows[0].occupied_beds == 3
        assert rows[0].total_beds == 3

    def test_recorded_while_forecasting_disabled(self, factory, build):
        stock_unit(build, "Medical", available=1, occupied=1)
        factory.feature_flags().disable_feature(TENANT, BedManagementFeature.CAPACITY_FORECASTING, reason="Pilot over")

        result = factory.capacity().record_occupancy_snapshot(TENANT, "Medical", snapshot_date=date(2024, 3, 1))

        assert result.snapshot_date == date(2024, 3, 1)
        assert result.occupancy_rate == 50.0


class TestCapacityMetrics:
    def test_summary(self, capacity, build):
        medical = stock_unit(build, "Medical", available=1)
        icu = stock_unit(build, "ICU", available=1)
        snapshot(build, medical, date(2024, 3, 4), 60.0)
        snapshot(build, medical, date(2024, 3, 5), 95.0)
        snapshot(build, icu, date(2024, 3, 5), 90.0)
        snapshot(build, icu, date(2024, 2, 20), 99.0)

        metrics = capacity.get_capacity_metrics(TENANT, date(2024, 3, 1), date(2024, 3, 6))

        assert metrics.snapshot_count == 3
        assert metrics.average_occupancy == 81.7
        assert metrics.peak_occupancy == 95.0
        assert metrics.surge_days == 2
        assert metrics.average_occupancy_by_unit == {"Medical": 77.5, "ICU": 90.0}

    def test_empty_window(self, capacity):
        metrics = capacity.get_capacity_metrics(TENANT, date(2024, 3, 1), date(2024, 3, 6))

        assert metrics.snapshot_count == 0
        assert metrics.average_occupancy == 0.0

    def test_reversed_window(self, capacity):
        with pytest.raises(ValidationError):
            capacity.get_capacity_metrics(TENANT, date(2024, 3, 6), date(2024, 3, 1))
