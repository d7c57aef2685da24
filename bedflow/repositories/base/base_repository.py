"""
Base repository with tenant-scoped read/write helpers and error translation.

Repositories never commit; the owning service decides the transaction
boundary so multi-row changes and their audit rows land atomically.
"""

from typing import Any, Dict, Generic, List, Optional, Type

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from bedflow.core.exceptions import NotFoundError, RepositoryError, TransientStoreError
from bedflow.core.logging import get_logger
from bedflow.models.base import ModelType

logger = get_logger(__name__)


def translate_db_error(exc: SQLAlchemyError, operation: str) -> Exception:
    """Map a SQLAlchemy error onto the engine error taxonomy."""
    if isinstance(exc, OperationalError) or getattr(exc, "connection_invalidated", False):
        return TransientStoreError(f"{operation} failed: {exc.orig if hasattr(exc, 'orig') else exc}")
    return RepositoryError(f"{operation} failed: {exc}")


class BaseRepository(Generic[ModelType]):
    """
    Tenant-aware repository.

    Every query is filtered by ``tenant_id``; callers must pass the tenant
    they have already authorised.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Query Helpers ====================

    def query(self, tenant_id: str) -> Query:
        return self.db.query(self.model).filter(self.model.tenant_id == tenant_id)

    def _run(self, operation: str, fn):
        try:
            return fn()
        except IntegrityError as e:
            raise RepositoryError(
                f"{self.model.__name__} {operation} violated a constraint",
                details={"error": str(e.orig)},
            ) from e
        except SQLAlchemyError as e:
            raise translate_db_error(e, f"{self.model.__name__} {operation}") from e

    # ==================== Create Operations ====================

    def add(self, entity: ModelType) -> ModelType:
        """
        Stage a new entity and flush so generated ids are available.

        Args:
            entity: Entity to create

        Returns:
            The flushed entity
        """
        def _add():
            self.db.add(entity)
            self.db.flush()
            return entity

        entity = self._run("create", _add)
        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, tenant_id: str, id: str) -> Optional[ModelType]:
        return self._run(
            "find by id",
            lambda: self.query(tenant_id).filter(self.model.id == id).first(),
        )

    def get_by_id(self, tenant_id: str, id: str) -> ModelType:
        """
        Get entity by ID or raise.

        Raises:
            NotFoundError: If entity not found for this tenant
        """
        entity = self.find_by_id(tenant_id, id)
        if entity is None:
            raise NotFoundError(self.model.__name__, id)
        return entity

    def find_by_criteria(
        self,
        tenant_id: str,
        criteria: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Any]] = None,
        limit: Optional[int] = None,
    ) -> List[ModelType]:
        """
        Find entities matching simple equality criteria.

        Args:
            tenant_id: Tenant scope
            criteria: Column name to value mapping
            order_by: Column expressions for ordering
            limit: Maximum number of rows
        """
        def _find():
            query = self.query(tenant_id)
            for field, value in (criteria or {}).items():
                query = query.filter(getattr(self.model, field) == value)
            if order_by:
                query = query.order_by(*order_by)
            if limit is not None:
                query = query.limit(limit)
            return query.all()

        return self._run("find by criteria", _find)

    def count(self, tenant_id: str, criteria: Optional[Dict[str, Any]] = None) -> int:
        def _count():
            query = self.query(tenant_id)
            for field, value in (criteria or {}).items():
                query = query.filter(getattr(self.model, field) == value)
            return query.count()

        return self._run("count", _count)

    def flush(self) -> None:
        self._run("flush", self.db.flush)
