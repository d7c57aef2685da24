from bedflow.repositories.bed.bed_assignment_repository import (
    BedAssignmentRepository,
    BedTurnoverMetricRepository,
)
from bedflow.repositories.bed.bed_repository import BedRepository

__all__ = ["BedAssignmentRepository", "BedRepository", "BedTurnoverMetricRepository"]
