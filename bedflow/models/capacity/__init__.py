from bedflow.models.capacity.occupancy_snapshot import OccupancySnapshot

__all__ = ["OccupancySnapshot"]
