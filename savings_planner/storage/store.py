"""Key/value store over the local database."""
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from savings_planner.database import Database
from savings_planner.errors import StorageError
from savings_planner.storage.models import StorageEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    """String-valued store. Every SQLAlchemy failure surfaces as StorageError."""

    def __init__(self, database: Database):
        self.database = database

    def get(self, key: str) -> Optional[str]:
        try:
            with self.database.session() as session:
                entry = session.get(StorageEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    def get_many(self, keys: Iterable[str]) -> Dict[str, str]:
        keys = list(keys)
        try:
            with self.database.session() as session:
                result = session.execute(select(StorageEntry).where(StorageEntry.key.in_(keys)))
                return {entry.key: entry.value for entry in result.scalars().all()}
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {keys}: {e}") from e

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Dict[str, str]) -> None:
        """Write several keys in one transaction."""
        try:
            with self.database.session() as session:
                for key, value in values.items():
                    entry = session.get(StorageEntry, key)
                    if entry is None:
                        session.add(StorageEntry(key=key, value=value))
                    else:
                        entry.value = value
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {sorted(values)}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self.database.session() as session:
                session.execute(delete(StorageEntry).where(StorageEntry.key == key))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e

    def clear(self) -> None:
        try:
            with self.database.session() as session:
                session.execute(delete(StorageEntry))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to clear storage: {e}") from e
