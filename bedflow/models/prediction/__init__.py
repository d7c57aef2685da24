from bedflow.models.prediction.discharge_readiness import DischargeReadinessPrediction
from bedflow.models.prediction.transfer_priority import TransferPriority

__all__ = ["DischargeReadinessPrediction", "TransferPriority"]
