"""
Capacity forecasting engine.

Projects unit occupancy from current beds, scheduled discharges and the
unit's historical admission rate, and turns the projection into staffing
and surge plans.
"""

import math
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from bedflow.core.exceptions import ValidationError
from bedflow.core.utils import hours_between, safe_mean
from bedflow.models.base.enums import BedManagementFeature, BedStatus
from bedflow.models.capacity import OccupancySnapshot
from bedflow.models.organization import Department
from bedflow.repositories.bed import BedRepository
from bedflow.repositories.capacity import OccupancySnapshotRepository
from bedflow.repositories.clinical import AdmissionRepository
from bedflow.repositories.organization import DepartmentRepository
from bedflow.repositories.prediction import DischargePredictionRepository
from bedflow.schemas.capacity import (
    CapacityForecast,
    CapacityMetrics,
    OccupancySnapshotResult,
    SeasonalPattern,
    StaffingRecommendation,
    SurgeCapacityPlan,
    SurgeResourceRequirements,
)
from bedflow.services.base.base_service import BaseService
from bedflow.services.capacity.constants import (
    BUSINESS_HOURS,
    DAYS_PER_MONTH,
    FORECAST_HORIZONS,
    FORECAST_INTERVAL_HOURS,
    HIGH_OCCUPANCY_FACTOR,
    HISTORY_DAYS,
    LOW_OCCUPANCY_FACTOR,
    MODERATE_OCCUPANCY_FACTOR,
    PATTERN_DAY_COUNT,
    SHIFT_MULTIPLIERS,
    STAFFING_HIGH_OCCUPANCY,
    SURGE_BEDS_PER_STAFF,
    TREND_THRESHOLD,
    forecast_confidence,
    staffing_ratio,
    surge_equipment,
    surge_supplies,
)


def occupancy_percent(occupied: int, capacity: int) -> float:
    if capacity <= 0:
        return 0.0
    return round(occupied / capacity * 100, 1)


def forecast_factors(occupancy_rate: float, forecast_date: datetime) -> List[str]:
    factors: List[str] = []

    if occupancy_rate > HIGH_OCCUPANCY_FACTOR:
        factors.append("High occupancy expected - near capacity")
    elif occupancy_rate > MODERATE_OCCUPANCY_FACTOR:
        factors.append("Moderate-high occupancy expected")
    elif occupancy_rate < LOW_OCCUPANCY_FACTOR:
        factors.append("Low occupancy expected")

    if forecast_date.weekday() >= 5:
        factors.append("Weekend - typically lower admission rates")

    if BUSINESS_HOURS[0] <= forecast_date.hour <= BUSINESS_HOURS[1]:
        factors.append("Business hours - higher discharge activity expected")

    return factors


def classify_trend(values: List[float]) -> str:
    """Compare the second half of a month against the first, with a 10% dead band."""
    if len(values) < 2:
        return "stable"
    middle = len(values) // 2
    first = sum(values[:middle]) / middle
    second = sum(values[middle:]) / (len(values) - middle)
    if second > first * (1 + TREND_THRESHOLD):
        return "increasing"
    if second < first * (1 - TREND_THRESHOLD):
        return "decreasing"
    return "stable"


def _unique(items: List[str]) -> List[str]:
    return list(OrderedDict.fromkeys(items))


class CapacityService(BaseService):
    """
    Capacity Forecasting Engine.

    Forecasts degrade to low confidence when little history is recorded;
    they never fail for lack of data.
    """

    feature = BedManagementFeature.CAPACITY_FORECASTING

    def __init__(self, db_session, **kwargs):
        super().__init__(db_session, **kwargs)
        self.department_repo = DepartmentRepository(db_session)
        self.bed_repo = BedRepository(db_session)
        self.admission_repo = AdmissionRepository(db_session)
        self.discharge_repo = DischargePredictionRepository(db_session)
        self.snapshot_repo = OccupancySnapshotRepository(db_session)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _bed_counts(self, tenant_id: str, department: Department) -> Dict[str, int]:
        """Occupied beds and capacity, where capacity excludes beds in maintenance."""
        by_status = self.bed_repo.count_by_status(tenant_id, department.id)
        total = sum(by_status.values())
        return {
            "occupied": by_status.get(BedStatus.OCCUPIED.value, 0),
            "capacity": total - by_status.get(BedStatus.MAINTENANCE.value, 0),
        }

    def _expected_admissions(self, tenant_id: str, department: Department, now: datetime, hours: int) -> int:
        """Admissions expected over ``hours`` from the unit's recent daily average."""
        admitted = self.admission_repo.count_admitted_since(
            tenant_id, department.id, now - timedelta(days=self.settings.engine.ADMISSION_HISTORY_DAYS)
        )
        if admitted:
            per_day = admitted / self.settings.engine.ADMISSION_HISTORY_DAYS
        else:
            per_day = self.settings.engine.DEFAULT_DAILY_ADMISSIONS
        return round(per_day / 24 * hours)

    # -------------------------------------------------------------------------
    # Forecast
    # -------------------------------------------------------------------------

    def predict_capacity(self, tenant_id: str, unit: str, hours: int = 24) -> List[CapacityForecast]:
        """
        Forecast occupancy at 6-hour checkpoints over ``hours``.

        Each checkpoint takes current occupancy, subtracts discharges due by
        then and adds a pro-rated share of expected admissions.

        Args:
            tenant_id: Tenant scope
            unit: Unit name
            hours: Horizon, one of 24, 48 or 72

        Raises:
            FeatureDisabledError: If capacity forecasting is off
            NotFoundError: If ``unit`` does not exist
            ValidationError: If ``hours`` is not a supported horizon
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        if hours not in FORECAST_HORIZONS:
            raise ValidationError(
                f"Forecast horizon must be one of {list(FORECAST_HORIZONS)}",
                field="hours",
            )
        return self._forecast(tenant_id, unit, hours)

    def _forecast(self, tenant_id: str, unit: str, hours: int) -> List[CapacityForecast]:
        now = self.clock()
        department = self.department_repo.get_by_name(tenant_id, unit)
        counts = self._bed_counts(tenant_id, department)
        history = self.snapshot_repo.find_since(tenant_id, department.id, now.date() - timedelta(days=HISTORY_DAYS))

        horizon_end = now + timedelta(hours=hours)
        scheduled = [
            p.predicted_discharge_date
            for p in self.discharge_repo.current_for_department(tenant_id, department.id)
            if now < p.predicted_discharge_date <= horizon_end
        ]
        expected_admissions = self._expected_admissions(tenant_id, department, now, hours)

        intervals = hours // FORECAST_INTERVAL_HOURS
        forecasts: List[CapacityForecast] = []
        for i in range(1, intervals + 1):
            checkpoint = now + timedelta(hours=i * FORECAST_INTERVAL_HOURS)
            discharged = sum(1 for due in scheduled if due <= checkpoint)
            admitted = round(expected_admissions * i / intervals)
            occupied = max(0, counts["occupied"] - discharged + admitted)
            rate = occupancy_percent(occupied, counts["capacity"])

            forecasts.append(
                CapacityForecast(
                    unit=unit,
                    forecast_date=checkpoint,
                    predicted_occupancy=occupied,
                    predicted_available=counts["capacity"] - occupied,
                    total_capacity=counts["capacity"],
                    occupancy_rate=rate,
                    confidence_level=forecast_confidence(len(history), i, intervals),
                    factors=forecast_factors(rate, checkpoint),
                )
            )

        self._logger.debug(
            f"Forecast {unit} over {hours}h: {len(scheduled)} discharges, {expected_admissions} admissions",
            extra={"tenant_id": tenant_id, "history_points": len(history)},
        )
        return forecasts

    # -------------------------------------------------------------------------
    # Seasonal patterns
    # -------------------------------------------------------------------------

    def analyze_seasonal_patterns(self, tenant_id: str, unit: str, months: int = 12) -> List[SeasonalPattern]:
        """
        Group recorded daily occupancy by calendar month.

        Returns an empty list when no snapshots exist for the period.

        Raises:
            FeatureDisabledError: If capacity forecasting is off
            NotFoundError: If ``unit`` does not exist
            ValidationError: If ``months`` is not positive
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        if months < 1:
            raise ValidationError("months must be at least 1", field="months")

        department = self.department_repo.get_by_name(tenant_id, unit)
        since = self.clock().date() - timedelta(days=months * DAYS_PER_MONTH)
        snapshots = self.snapshot_repo.find_since(tenant_id, department.id, since)

        by_month: "OrderedDict[str, List[OccupancySnapshot]]" = OrderedDict()
        for snapshot in snapshots:
            by_month.setdefault(snapshot.snapshot_date.strftime("%B %Y"), []).append(snapshot)

        patterns: List[SeasonalPattern] = []
        for period, days in by_month.items():
            ranked = sorted(days, key=lambda s: s.occupancy_rate, reverse=True)
            patterns.append(
                SeasonalPattern(
                    period=period,
                    average_occupancy=round(safe_mean(s.occupancy_rate for s in days), 1),
                    peak_days=_unique([s.snapshot_date.strftime("%A") for s in ranked[:PATTERN_DAY_COUNT]]),
                    low_days=_unique([s.snapshot_date.strftime("%A") for s in ranked[-PATTERN_DAY_COUNT:]]),
                    trend=classify_trend([s.occupancy_rate for s in days]),
                )
            )
        return patterns

    # -------------------------------------------------------------------------
    # Staffing
    # -------------------------------------------------------------------------

    def generate_staffing_recommendations(
        self,
        tenant_id: str,
        unit: str,
        target_date: datetime,
    ) -> List[StaffingRecommendation]:
        """
        Staff needed per shift on ``target_date``.

        Uses the forecast checkpoint nearest the target date, scaled by the
        shift multiplier and divided by the unit's staffing ratios.

        Raises:
            FeatureDisabledError: If capacity forecasting is off
            NotFoundError: If ``unit`` does not exist
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        now = self.clock()

        hours_ahead = math.ceil(hours_between(now, target_date))
        horizon = next((h for h in FORECAST_HORIZONS if h >= hours_ahead), FORECAST_HORIZONS[-1])
        forecasts = self._forecast(tenant_id, unit, horizon)
        nearest = min(forecasts, key=lambda f: abs((f.forecast_date - target_date).total_seconds()))

        department = self.department_repo.get_by_name(tenant_id, unit)
        ratio = staffing_ratio(department.unit_type)

        recommendations: List[StaffingRecommendation] = []
        for shift, multiplier in SHIFT_MULTIPLIERS.items():
            patients = math.ceil(nearest.predicted_occupancy * multiplier)
            reasoning = [
                f"Predicted {patients} patients for {shift} shift",
                f"Target patient-to-nurse ratio: 1:{ratio.patients_per_nurse}",
                f"Occupancy rate: {nearest.occupancy_rate}%",
            ]
            if nearest.occupancy_rate > STAFFING_HIGH_OCCUPANCY:
                reasoning.append("High occupancy - consider additional staff")
            if shift == "day":
                reasoning.append("Day shift requires full staffing for procedures and discharges")

            recommendations.append(
                StaffingRecommendation(
                    unit=unit,
                    shift=shift,
                    date=target_date,
                    recommended_nurses=math.ceil(patients / ratio.patients_per_nurse),
                    recommended_doctors=math.ceil(patients / ratio.patients_per_doctor),
                    recommended_support_staff=math.ceil(patients / ratio.patients_per_support),
                    patient_to_nurse_ratio=ratio.patients_per_nurse,
                    reasoning=reasoning,
                )
            )
        return recommendations

    # -------------------------------------------------------------------------
    # Surge
    # -------------------------------------------------------------------------

    def assess_surge_capacity(self, tenant_id: str, unit: str) -> SurgeCapacityPlan:
        """
        Compare current occupancy against the surge trigger.

        Surge beds are non-isolation beds currently out of service; one extra
        staff member is planned per four surge beds.

        Raises:
            FeatureDisabledError: If capacity forecasting is off
            NotFoundError: If ``unit`` does not exist
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        engine = self.settings.engine

        department = self.department_repo.get_by_name(tenant_id, unit)
        counts = self._bed_counts(tenant_id, department)
        current_level = occupancy_percent(counts["occupied"], counts["capacity"])

        activated = current_level >= engine.SURGE_TRIGGER_LEVEL
        warning = not activated and current_level >= engine.SURGE_WARNING_LEVEL
        surge_beds = self.bed_repo.count_surge_beds(tenant_id, department.id)
        staff = math.ceil(surge_beds / SURGE_BEDS_PER_STAFF)

        if activated:
            status = "activated"
            recommendations = [
                "SURGE CAPACITY ACTIVATED - Immediate action required",
                f"Activate {surge_beds} additional beds",
                f"Deploy {staff} additional staff members",
                "Expedite discharge planning for stable patients",
                "Consider diverting non-urgent admissions",
            ]
            self._logger.warning(
                f"Surge capacity activated for {unit} at {current_level}%",
                extra={"tenant_id": tenant_id},
            )
        elif warning:
            status = "warning"
            recommendations = [
                "WARNING: Approaching surge capacity threshold",
                "Prepare surge resources for potential activation",
                "Review discharge readiness of current patients",
                "Alert staffing coordinator of potential needs",
            ]
        else:
            status = "normal"
            recommendations = [
                "Normal capacity - no surge activation needed",
                "Continue monitoring occupancy levels",
            ]

        return SurgeCapacityPlan(
            unit=unit,
            trigger_level=engine.SURGE_TRIGGER_LEVEL,
            current_level=current_level,
            surge_activated=activated,
            surge_status=status,
            additional_beds_available=surge_beds,
            estimated_activation_time="Immediate" if activated else "2-4 hours",
            resource_requirements=SurgeResourceRequirements(
                staff=staff,
                equipment=surge_equipment(department.unit_type, surge_beds),
                supplies=surge_supplies(surge_beds),
            ),
            recommendations=recommendations,
        )

    # -------------------------------------------------------------------------
    # Occupancy history
    # -------------------------------------------------------------------------

    def record_occupancy_snapshot(
        self,
        tenant_id: str,
        unit: str,
        snapshot_date: Optional[date] = None,
    ) -> OccupancySnapshotResult:
        """
        Store today's (or ``snapshot_date``'s) occupancy for a unit.

        Recording the same day again overwrites it. Not feature-gated so
        history keeps accumulating while forecasting is switched off.

        Raises:
            NotFoundError: If ``unit`` does not exist
        """
        now = self.clock()
        snapshot_date = snapshot_date or now.date()

        with self.transaction():
            department = self.department_repo.get_by_name(tenant_id, unit)
            counts = self._bed_counts(tenant_id, department)
            rate = occupancy_percent(counts["occupied"], counts["capacity"])
            snapshot = self.snapshot_repo.upsert_day(
                tenant_id,
                department.id,
                snapshot_date,
                occupied_beds=counts["occupied"],
                total_beds=counts["capacity"],
                occupancy_rate=rate,
                recorded_at=now,
            )

        self._logger.debug(f"Recorded occupancy {rate}% for {unit} on {snapshot_date}")
        return OccupancySnapshotResult(
            unit=unit,
            snapshot_date=snapshot.snapshot_date,
            occupied_beds=snapshot.occupied_beds,
            total_beds=snapshot.total_beds,
            occupancy_rate=snapshot.occupancy_rate,
        )

    def get_capacity_metrics(self, tenant_id: str, start: date, end: date) -> CapacityMetrics:
        """
        Occupancy summary over recorded snapshots in ``[start, end]``.

        Raises:
            FeatureDisabledError: If capacity forecasting is off
            ValidationError: If ``end`` is before ``start``
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        if end < start:
            raise ValidationError("end must not be before start", field="end")

        snapshots = self.snapshot_repo.find_between(tenant_id, start, end)
        if not snapshots:
            return CapacityMetrics(start=start, end=end)

        names = {d.id: d.name for d in self.department_repo.list_all(tenant_id)}
        by_unit: Dict[str, List[float]] = {}
        for snapshot in snapshots:
            by_unit.setdefault(names.get(snapshot.department_id, snapshot.department_id), []).append(
                snapshot.occupancy_rate
            )

        rates = [s.occupancy_rate for s in snapshots]
        return CapacityMetrics(
            start=start,
            end=end,
            snapshot_count=len(snapshots),
            average_occupancy=round(safe_mean(rates), 1),
            peak_occupancy=max(rates),
            surge_days=sum(1 for r in rates if r >= self.settings.engine.SURGE_TRIGGER_LEVEL),
            average_occupancy_by_unit={unit: round(safe_mean(values), 1) for unit, values in by_unit.items()},
        )
