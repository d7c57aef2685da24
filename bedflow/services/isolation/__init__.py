from bedflow.services.isolation.isolation_service import (
    IsolationService,
    check_bed_compatibility,
    coerce_isolation_type,
    most_restrictive,
)

__all__ = ["IsolationService", "check_bed_compatibility", "coerce_isolation_type", "most_restrictive"]
