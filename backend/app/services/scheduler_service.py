import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from app.core.config import settings
from app.core.exceptions import PersistenceError, ValidationError
from app.schemas.schedule import ScheduledItem
from app.services.snapshot_store import SnapshotStore
from app.services.timeline import Timeline

logger = logging.getLogger(__name__)


def parse_instant(value: Union[datetime, str, None]) -> datetime:
    """Accepts a datetime or an ISO-8601 string (trailing 'Z' allowed)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid start time: {value!r}")
    raise ValidationError("Missing or invalid start time")


def coerce_duration(value: Any, default: int) -> int:
    """
    Mirrors `parseInt(duration) || default` with non-positive values also
    falling back to the default. Floats and numeric strings are truncated.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        if isinstance(value, (int, float)):
            seconds = int(value)
        elif isinstance(value, str):
            seconds = int(float(value.strip()))
        else:
            return default
    except (ValueError, OverflowError):
        return default
    return seconds if seconds > 0 else default


class SchedulerService:
    """
    Façade over the channel timeline.

    Validates placement requests, delegates conflict resolution to
    `Timeline`, and keeps the snapshot store in step with every placement.
    """

    def __init__(self, timeline: Optional[Timeline] = None, store: Optional[SnapshotStore] = None):
        self.timeline = timeline if timeline is not None else Timeline()
        self.store = store
        self.default_duration = settings.DEFAULT_DURATION_SECONDS

    def propose(
        self,
        title: Optional[str],
        media_ref: Optional[str],
        requested_start: Union[datetime, str, None],
        requested_duration: Any = None,
    ) -> ScheduledItem:
        """
        Schedules a new item at the first free gap at or after `requested_start`.

        Raises:
            ValidationError: start is missing/unparseable, title/media_ref is blank,
                or the item would run past the last representable instant.
        """
        if not title or not str(title).strip():
            raise ValidationError("Missing title")
        if not media_ref or not str(media_ref).strip():
            raise ValidationError("Missing media reference")
        start = parse_instant(requested_start)
        duration = coerce_duration(requested_duration, self.default_duration)

        placed = self.timeline.insert_resolving_conflicts(
            title=str(title).strip(),
            media_ref=str(media_ref).strip(),
            start=start,
            duration=duration,
        )
        logger.info(f"Scheduled '{placed.title}' [ID: {placed.id}] at {placed.start.isoformat()} for {placed.duration}s")

        if self.store is not None:
            try:
                self.store.append(placed)
            except PersistenceError as e:
                # The placement stands; the next full snapshot save catches up.
                logger.error(str(e))

        return placed

    def current(self, now: Optional[datetime] = None) -> Optional[ScheduledItem]:
        if now is None:
            now = datetime.now(timezone.utc)
        return self.timeline.find_containing(now)

    def schedule(self) -> List[ScheduledItem]:
        return self.timeline.list_sorted()

    def restore(self) -> int:
        """Bulk-loads the persisted snapshot. Returns the number of items restored."""
        if self.store is None:
            return 0
        items = self.store.load()
        self.timeline.load(items)
        return len(items)

    def save_snapshot(self):
        if self.store is None:
            return
        self.store.save(self.timeline.export())
