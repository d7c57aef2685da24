from bedflow.services.turnover.turnover_service import (
    TurnoverService,
    base_cleaning_priority,
    target_turnover_minutes,
)

__all__ = ["TurnoverService", "base_cleaning_priority", "target_turnover_minutes"]
