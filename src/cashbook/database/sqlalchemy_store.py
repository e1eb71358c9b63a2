"""SQLAlchemy implementation of the local record store."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cashbook.database.base import EntityType, Record, RecordStore, record_key
from cashbook.database.models import StoredRecord, create_session_factory
from cashbook.domain.errors import StorageUnavailable

logger = logging.getLogger(__name__)


class SQLAlchemyRecordStore(RecordStore):
    """SQLAlchemy-based implementation of RecordStore."""

    def __init__(self, database_url: str):
        """Initialize the store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')

        Raises:
            StorageUnavailable: If the database cannot be opened
        """
        self.database_url = database_url
        try:
            self.session_factory = create_session_factory(database_url)
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Cannot open local store at {database_url}: {e}") from e
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def _fail(self, action: str, error: SQLAlchemyError) -> StorageUnavailable:
        if self._session is not None:
            try:
                self._session.rollback()
            except SQLAlchemyError:
                logger.debug("Rollback failed after %s", action, exc_info=True)
        return StorageUnavailable(f"Local store failed to {action}: {error}")

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def get_all(self, entity_type: EntityType) -> list[Record]:
        try:
            rows = (
                self._get_session()
                .query(StoredRecord)
                .filter(StoredRecord.entity_type == entity_type.value)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail(f"read {entity_type.value}", e) from e
        return [dict(row.payload) for row in rows]

    def get(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        try:
            row = self._get_session().get(StoredRecord, (entity_type.value, str(record_id)))
        except SQLAlchemyError as e:
            raise self._fail(f"read {entity_type.value}", e) from e
        if row is None:
            return None
        return dict(row.payload)

    def put(self, entity_type: EntityType, record: Record) -> None:
        key = record_key(record)
        session = self._get_session()
        try:
            session.merge(StoredRecord(entity_type=entity_type.value, record_id=key, payload=dict(record)))
            session.commit()
        except SQLAlchemyError as e:
            raise self._fail(f"write {entity_type.value}", e) from e

    def delete(self, entity_type: EntityType, record_id: str) -> None:
        session = self._get_session()
        try:
            session.query(StoredRecord).filter(
                StoredRecord.entity_type == entity_type.value,
                StoredRecord.record_id == str(record_id),
            ).delete()
            session.commit()
        except SQLAlchemyError as e:
            raise self._fail(f"delete from {entity_type.value}", e) from e

    def clear(self, entity_type: EntityType) -> None:
        session = self._get_session()
        try:
            session.query(StoredRecord).filter(StoredRecord.entity_type == entity_type.value).delete()
            session.commit()
        except SQLAlchemyError as e:
            raise self._fail(f"clear {entity_type.value}", e) from e

    def clear_all(self) -> None:
        session = self._get_session()
        try:
            session.query(StoredRecord).delete()
            session.commit()
        except SQLAlchemyError as e:
            raise self._fail("clear all collections", e) from e
