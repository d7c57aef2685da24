"""
Pure bed scoring: no database access, so it can be tested and tuned in
isolation.
"""

from typing import List, Optional

from bedflow.models.base.enums import CleaningStatus
from bedflow.models.bed import Bed
from bedflow.schemas.bed import BedRequirements, BedScore
from bedflow.services.bed.constants import (
    DEFAULT_WEIGHTS,
    PROXIMITY_MODERATE_DISTANCE,
    PROXIMITY_NEAR_DISTANCE,
    UNKNOWN_DISTANCE,
    BedScoringWeights,
)


class BedScorer:
    """Scores a bed 0-100 against patient requirements."""

    def __init__(self, weights: BedScoringWeights = DEFAULT_WEIGHTS):
        self.weights = weights

    def score(
        self,
        bed: Bed,
        requirements: BedRequirements,
        staff_ratio: Optional[int],
        max_ratio: int,
    ) -> BedScore:
        """
        Score one bed.

        Args:
            bed: Candidate bed (its department must be loaded)
            requirements: Validated patient requirements
            staff_ratio: Patients per active nurse on the bed's unit, or
                ``None`` when the unit has no active nurses
            max_ratio: Highest acceptable patients-per-nurse ratio

        Returns:
            BedScore with the total and the reason/warning strings
        """
        w = self.weights
        reasons: List[str] = []
        warnings: List[str] = []
        score = 0

        # Isolation
        if requirements.isolation_required:
            wanted = requirements.isolation_type.value
            if bed.isolation_capable and bed.isolation_type == wanted:
                score += w.isolation_match
                reasons.append(f"Matches required {wanted} isolation")
            elif bed.isolation_capable:
                score += w.isolation_type_mismatch
                warnings.append(f"Has isolation but type mismatch ({bed.isolation_type} vs {wanted})")
            else:
                warnings.append("Does not support required isolation")
        elif bed.isolation_capable:
            score += w.isolation_capable_unused
            reasons.append("Isolation-capable bed available for non-isolation patient")
        else:
            score += w.isolation_standard
            reasons.append("Standard bed for non-isolation patient")

        # Telemetry
        if requirements.telemetry_required:
            if bed.telemetry_capable:
                score += w.telemetry_match
                reasons.append("Has required telemetry monitoring")
            else:
                warnings.append("Missing required telemetry capability")
        elif bed.telemetry_capable:
            score += w.telemetry_capable_unused
            reasons.append("Telemetry available if needed")
        else:
            score += w.telemetry_standard
            reasons.append("Standard monitoring for non-telemetry patient")

        # Oxygen
        if requirements.oxygen_required:
            if bed.oxygen_available:
                score += w.oxygen_match
                reasons.append("Has required oxygen supply")
            else:
                warnings.append("Missing required oxygen supply")
        else:
            score += w.oxygen_not_required
            reasons.append("No special oxygen requirements")

        # Specialty unit
        if requirements.specialty_unit:
            if bed.unit_type == requirements.specialty_unit:
                score += w.specialty_match
                reasons.append(f"Matches specialty unit: {requirements.specialty_unit}")
            else:
                warnings.append(f"Unit mismatch: {bed.unit_type} vs {requirements.specialty_unit}")
        else:
            score += w.specialty_not_requested
            reasons.append("General medical/surgical bed")

        # Proximity
        if requirements.proximity_to_nurses_station:
            distance = bed.distance_to_nurses_station
            distance = UNKNOWN_DISTANCE if distance is None else distance
            if distance <= PROXIMITY_NEAR_DISTANCE:
                score += w.proximity_near
                reasons.append("Close to nurses station (high visibility)")
            elif distance <= PROXIMITY_MODERATE_DISTANCE:
                score += w.proximity_moderate
                reasons.append("Moderate distance to nurses station")
            else:
                score += w.proximity_far
                reasons.append("Far from nurses station")
        else:
            score += w.proximity_not_requested
            reasons.append("Standard location")

        # Bariatric
        if requirements.bariatric_required:
            if bed.bariatric_capable:
                score += w.bariatric_match
                reasons.append("Bariatric-capable bed")
            else:
                warnings.append("Not bariatric-capable")
        else:
            score += w.bariatric_not_required
            reasons.append("Standard bed size")

        # Staffing; a ratio of 0 (empty unit) counts as adequate
        if staff_ratio is None:
            warnings.append("No active nursing staff on unit")
        elif staff_ratio <= max_ratio:
            score += w.staff_ratio_adequate
            reasons.append(f"Adequate staffing ratio: 1:{staff_ratio}")
        else:
            score += w.staff_ratio_high
            warnings.append(f"High staffing ratio: 1:{staff_ratio}")

        # Cleanliness
        if bed.cleaning_status == CleaningStatus.CLEAN.value:
            score += w.clean
            reasons.append("Bed is clean and ready")
        elif bed.cleaning_status == CleaningStatus.IN_PROGRESS.value:
            score += w.cleaning_in_progress
            reasons.append("Bed cleaning in progress")
        else:
            warnings.append("Bed requires cleaning")

        return BedScore(score=min(100, score), reasons=reasons, warnings=warnings)
