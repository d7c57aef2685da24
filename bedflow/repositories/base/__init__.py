from bedflow.repositories.base.base_repository import BaseRepository, translate_db_error
from bedflow.repositories.base.current_view import CurrentViewRepository

__all__ = ["BaseRepository", "CurrentViewRepository", "translate_db_error"]
