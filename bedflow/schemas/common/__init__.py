from bedflow.schemas.common.base import BaseSchema, DateRange

__all__ = ["BaseSchema", "DateRange"]
