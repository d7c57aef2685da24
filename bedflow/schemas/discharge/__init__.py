from bedflow.schemas.discharge.discharge_readiness import (
    DischargeBarrier,
    DischargeIntervention,
    DischargeMetrics,
    DischargeReadinessResult,
)

__all__ = [
    "DischargeBarrier",
    "DischargeIntervention",
    "DischargeMetrics",
    "DischargeReadinessResult",
]
