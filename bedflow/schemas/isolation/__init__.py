from bedflow.schemas.isolation.isolation import (
    IsolationRequirement,
    IsolationRoomAvailability,
    IsolationValidation,
)

__all__ = ["IsolationRequirement", "IsolationRoomAvailability", "IsolationValidation"]
