from bedflow.schemas.turnover.turnover import (
    BedBoardEntry,
    BedStatusBoard,
    BedStatusChange,
    BoardSummary,
    CleaningQueueItem,
    HousekeepingAlertResult,
    TurnoverMetrics,
    TurnoverStats,
    UnitBoard,
    UnitTurnoverStats,
)

__all__ = [
    "BedBoardEntry",
    "BedStatusBoard",
    "BedStatusChange",
    "BoardSummary",
    "CleaningQueueItem",
    "HousekeepingAlertResult",
    "TurnoverMetrics",
    "TurnoverStats",
    "UnitBoard",
    "UnitTurnoverStats",
]
