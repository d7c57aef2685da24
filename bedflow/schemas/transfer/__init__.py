from bedflow.schemas.transfer.transfer import (
    BedAvailabilityPrediction,
    EDPatientPriority,
    TransferCompletionResult,
    TransferMetrics,
    TransferNotificationResult,
    TransferPriorityResult,
)

__all__ = [
    "BedAvailabilityPrediction",
    "EDPatientPriority",
    "TransferCompletionResult",
    "TransferMetrics",
    "TransferNotificationResult",
    "TransferPriorityResult",
]
