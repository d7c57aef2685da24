"""
Append-only log with a materialized "current" row per admission.
"""

from typing import List, Optional

from bedflow.models.base import ModelType
from bedflow.repositories.base.base_repository import BaseRepository


class CurrentViewRepository(BaseRepository[ModelType]):
    """
    Repository for prediction logs keyed by admission.

    Models must define ``admission_id``, ``is_current`` and ``computed_at``.
    Appending demotes the previous current row in the same flush, so
    readers always see exactly one current row per admission.
    """

    def find_current(self, tenant_id: str, admission_id: str) -> Optional[ModelType]:
        return self._run(
            "find current",
            lambda: self.query(tenant_id)
            .filter(self.model.admission_id == admission_id, self.model.is_current.is_(True))
            .first(),
        )

    def append_current(self, entity: ModelType) -> ModelType:
        def _demote():
            self.query(entity.tenant_id).filter(
                self.model.admission_id == entity.admission_id,
                self.model.is_current.is_(True),
            ).update({self.model.is_current: False}, synchronize_session="fetch")

        self._run("demote current", _demote)
        entity.is_current = True
        return self.add(entity)

    def history(self, tenant_id: str, admission_id: str, limit: int = 50) -> List[ModelType]:
        return self._run(
            "history",
            lambda: self.query(tenant_id)
            .filter(self.model.admission_id == admission_id)
            .order_by(self.model.computed_at.desc(), self.model.created_at.desc())
            .limit(limit)
            .all(),
        )
