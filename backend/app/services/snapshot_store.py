import logging
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from database.database import SessionLocal, engine
from database.models import Base, ScheduledItemRecord
from app.core.exceptions import PersistenceError
from app.schemas.schedule import ScheduledItem
from app.services.timeline import as_utc

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Persists the channel timeline to the database (Postgres/SQLite).
    Rows are written as items are placed and read back in start order on boot.
    """
    def __init__(self, session_factory=SessionLocal, bind=engine):
        self.session_factory = session_factory
        # Ensure tables exist (for local sqlite fallback or initial run).
        # An unreachable database is not fatal: loads come back empty and
        # appends surface as PersistenceError.
        try:
            Base.metadata.create_all(bind=bind)
        except SQLAlchemyError as e:
            logger.warning(f"Schedule database unavailable, continuing without a snapshot: {e}")

    def get_db(self):
        return self.session_factory()

    @staticmethod
    def _to_record(item: ScheduledItem) -> ScheduledItemRecord:
        return ScheduledItemRecord(
            id=item.id,
            title=item.title,
            media_ref=item.media_ref,
            start_time=item.start,
            duration=item.duration,
        )

    @staticmethod
    def _to_item(record: ScheduledItemRecord) -> ScheduledItem:
        return ScheduledItem(
            id=record.id,
            title=record.title,
            media_ref=record.media_ref,
            start=as_utc(record.start_time),
            duration=record.duration,
        )

    def load(self) -> List[ScheduledItem]:
        """
        Reads the persisted timeline. An unreadable store is not fatal:
        the failure is logged and an empty list is returned.
        """
        db = self.get_db()
        try:
            records = db.query(ScheduledItemRecord).order_by(ScheduledItemRecord.start_time).all()
            items = [self._to_item(record) for record in records]
            logger.info(f"Loaded {len(items)} scheduled items from snapshot.")
            return items
        except (SQLAlchemyError, ValueError) as e:
            logger.warning(f"Failed to load schedule snapshot, starting empty: {e}")
            return []
        finally:
            db.close()

    def append(self, item: ScheduledItem):
        db = self.get_db()
        try:
            db.add(self._to_record(item))
            db.commit()
            logger.info(f"Persisted scheduled item [ID: {item.id}]")
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to persist item {item.id}: {e}") from e
        finally:
            db.close()

    def save(self, items: Iterable[ScheduledItem]):
        """Replaces the stored snapshot with `items` in one transaction."""
        db = self.get_db()
        try:
            db.query(ScheduledItemRecord).delete()
            count = 0
            for item in items:
                db.add(self._to_record(item))
                count += 1
            db.commit()
            logger.info(f"Saved schedule snapshot ({count} items).")
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to save schedule snapshot: {e}") from e
        finally:
            db.close()
