from bedflow.repositories.capacity.occupancy_repository import OccupancySnapshotRepository

__all__ = ["OccupancySnapshotRepository"]
