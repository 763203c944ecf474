import bisect
import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from app.core.exceptions import ValidationError
from app.schemas.schedule import ScheduledItem

DEFAULT_DURATION_SECONDS = 3600

logger = logging.getLogger(__name__)


def as_utc(instant: datetime) -> datetime:
    """Normalizes an instant to aware UTC. Naive datetimes are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


class Timeline:
    """
    Start-ordered, non-overlapping collection of scheduled items.

    Items live in an immutable tuple. Writers build a new tuple under
    `_write_lock` and publish it with one reference swap, so readers never
    need the lock and always see a complete snapshot.
    """

    def __init__(self, items: Optional[Iterable[ScheduledItem]] = None):
        self._items: Tuple[ScheduledItem, ...] = ()
        self._write_lock = threading.Lock()
        if items:
            self.load(items)

    def __len__(self) -> int:
        return len(self._items)

    def load(self, items: Iterable[ScheduledItem]) -> None:
        """
        Bulk-loads a trusted snapshot, replacing the current contents.
        Conflict resolution is skipped; the snapshot is assumed non-overlapping.
        """
        loaded = sorted(
            (item.model_copy(update={"start": as_utc(item.start)}) for item in items),
            key=lambda item: item.start,
        )
        with self._write_lock:
            self._items = tuple(loaded)
        logger.info(f"Timeline loaded with {len(loaded)} items.")

    def export(self) -> List[ScheduledItem]:
        return list(self._items)

    def list_sorted(self) -> List[ScheduledItem]:
        return list(self._items)

    def insert_resolving_conflicts(
        self,
        title: str,
        media_ref: str,
        start: datetime,
        duration: Optional[int] = None,
    ) -> ScheduledItem:
        """
        Places a new item, pushing it forward past every item it overlaps.

        The candidate is never moved earlier than `start`, never split and
        never rejected. Exact adjacency (candidate.start == existing.end) is
        not an overlap. A missing or non-positive duration defaults to
        DEFAULT_DURATION_SECONDS.

        Returns:
            The placed item with its final start.

        Raises:
            ValidationError: the item would end past the last representable
                instant. The timeline is left unchanged.
        """
        if duration is None or duration <= 0:
            duration = DEFAULT_DURATION_SECONDS
        requested_start = as_utc(start)
        try:
            span = timedelta(seconds=duration)
        except OverflowError:
            raise ValidationError(f"Duration too large: {duration}s")

        with self._write_lock:
            items = self._items
            candidate_start = requested_start

            # Single left-to-right sweep: each shift only moves the candidate
            # forward, so later items are the only ones left to re-check.
            try:
                candidate_end = candidate_start + span
                for existing in items:
                    if existing.overlaps(candidate_start, candidate_end):
                        candidate_start = existing.end
                        candidate_end = candidate_start + span
            except OverflowError:
                raise ValidationError(f"'{title}' cannot be placed before the end of the calendar")

            placed = ScheduledItem(
                id=uuid.uuid4().hex,
                title=title,
                media_ref=media_ref,
                start=candidate_start,
                duration=duration,
            )

            position = bisect.bisect_right(items, candidate_start, key=lambda item: item.start)
            self._items = items[:position] + (placed,) + items[position:]

        if candidate_start != requested_start:
            logger.info(
                f"Shifted '{title}' from {requested_start.isoformat()} to {candidate_start.isoformat()} to resolve overlap."
            )
        return placed

    def find_containing(self, instant: datetime) -> Optional[ScheduledItem]:
        """Returns the first item (in start order) with start <= instant <= end, or None."""
        instant = as_utc(instant)
        for item in self._items:
            if item.contains(instant):
                return item
        return None
