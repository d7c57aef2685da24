from bedflow.services.transfer.transfer_service import (
    TransferService,
    transfer_priority_score,
    transfer_urgency,
)

__all__ = ["TransferService", "transfer_priority_score", "transfer_urgency"]
