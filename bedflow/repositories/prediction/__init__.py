from bedflow.repositories.prediction.prediction_repository import (
    DischargePredictionRepository,
    TransferPriorityRepository,
)

__all__ = ["DischargePredictionRepository", "TransferPriorityRepository"]
