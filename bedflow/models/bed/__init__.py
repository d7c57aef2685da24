from bedflow.models.bed.bed import Bed
from bedflow.models.bed.bed_assignment import BedAssignment
from bedflow.models.bed.turnover import BedTurnoverMetric

__all__ = ["Bed", "BedAssignment", "BedTurnoverMetric"]
