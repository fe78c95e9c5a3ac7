import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from gardenbook.config import settings
from gardenbook.database import make_engine
from gardenbook.models.remote_record import RemoteRecord

logger = logging.getLogger(__name__)


class RemoteStoreError(Exception):
    """Network or remote rejection; never fatal for the local store."""


class RemoteStore(ABC):
    """
    Remote replica, one row per (collection, record id, owner).
    Rows are dicts: {"id", "data", "updated_at"}.
    """

    @abstractmethod
    def upsert(self, collection: str, user_id: str, rows: List[Dict[str, Any]]) -> None:
        ...

    @abstractmethod
    def delete(self, collection: str, record_id: str, user_id: str) -> None:
        ...

    @abstractmethod
    def select_by_owner(self, collection: str, user_id: str) -> List[Dict[str, Any]]:
        ...


class SqlRemoteStore(RemoteStore):
    """Remote replica in a shared SQL database (PostgreSQL in production)."""

    def __init__(self, database_url: Optional[str] = None, engine=None):
        if engine is None:
            engine = make_engine(database_url or settings.remote_database_url)
        self.engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def create_tables(self) -> None:
        RemoteRecord.__table__.create(bind=self.engine, checkfirst=True)

    def upsert(self, collection: str, user_id: str, rows: List[Dict[str, Any]]) -> None:
        with self._session_factory() as db:
            try:
                for row in rows:
                    existing = db.get(RemoteRecord, (collection, row["id"], user_id))
                    updated_at = _parse_timestamp(row.get("updated_at"))
                    if existing is None:
                        db.add(RemoteRecord(
                            collection=collection,
                            record_id=row["id"],
                            user_id=user_id,
                            data=row["data"],
                            updated_at=updated_at,
                        ))
                    else:
                        existing.data = row["data"]
                        existing.updated_at = updated_at
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise RemoteStoreError(f"Remote upsert into {collection} failed: {str(e)}") from e
        logger.debug(f"Upserted {len(rows)} rows into remote {collection}")

    def delete(self, collection: str, record_id: str, user_id: str) -> None:
        with self._session_factory() as db:
            try:
                db.query(RemoteRecord).filter(
                    RemoteRecord.collection == collection,
                    RemoteRecord.record_id == record_id,
                    RemoteRecord.user_id == user_id,
                ).delete(synchronize_session=False)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise RemoteStoreError(f"Remote delete from {collection} failed: {str(e)}") from e

    def select_by_owner(self, collection: str, user_id: str) -> List[Dict[str, Any]]:
        with self._session_factory() as db:
            try:
                rows = db.query(RemoteRecord).filter(
                    RemoteRecord.collection == collection,
                    RemoteRecord.user_id == user_id,
                ).all()
            except SQLAlchemyError as e:
                raise RemoteStoreError(f"Remote select from {collection} failed: {str(e)}") from e
            return [
                {"id": row.record_id, "data": row.data, "updated_at": row.updated_at}
                for row in rows
            ]


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return datetime.now(timezone.utc)
