from bedflow.services.discharge.discharge_service import (
    DischargeService,
    predicted_discharge_date,
    score_from,
    vitals_unstable,
)

__all__ = ["DischargeService", "predicted_discharge_date", "score_from", "vitals_unstable"]
