"""
Freshness Tracker

Owns the "last successful sync" timestamp and decides whether the vector
index must be rebuilt. A sync is needed when:
- nothing has been synced yet (or the tracker was invalidated),
- the last sync is older than the re-validation window,
- the source-of-record has a mutation newer than the last sync.

The timestamp may be persisted to a small JSON file so a restarted
process does not resync immediately. The file is a cache, never the
source of truth.
"""
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from dateutil import parser as date_parser

from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_REVALIDATE_AFTER = timedelta(minutes=5)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Naive timestamps from the database are UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class FreshnessTracker:
    """Dirty-check state shared by the sync engine and the change listener"""

    def __init__(
        self,
        revalidate_after: timedelta = DEFAULT_REVALIDATE_AFTER,
        state_path: Optional[Union[str, Path]] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Args:
            revalidate_after: Maximum age of a sync before it is considered stale
            state_path: JSON file used to persist the timestamp (None disables)
            clock: Returns the current aware datetime
        """
        self.revalidate_after = revalidate_after
        self.state_path = Path(state_path) if state_path else None
        self.clock = clock
        self.last_sync_at: Optional[datetime] = None
        # Bumped by every invalidate(); a sync started before an
        # invalidation must not mark the index fresh.
        self.generation = 0
        self.load()

    def should_sync(self, latest_mutation: Optional[datetime] = None) -> bool:
        """
        Decide whether a sync is necessary. Never mutates state.

        Args:
            latest_mutation: Most recent updated_at in the source-of-record

        Returns:
            True if the index must be refreshed
        """
        last = self.last_sync_at
        if last is None:
            return True
        if self.clock() - last > self.revalidate_after:
            return True
        if latest_mutation is not None and ensure_aware(latest_mutation) > last:
            return True
        return False

    def mark_synced(
        self,
        as_of: Optional[datetime] = None,
        generation: Optional[int] = None
    ) -> bool:
        """
        Record a successful full sync

        Args:
            as_of: When the synced snapshot was read (default: now)
            generation: Generation observed when the sync started; if an
                invalidation happened since, the sync is not recorded

        Returns:
            True if the timestamp was recorded
        """
        if generation is not None and generation != self.generation:
            logger.info("Source changed during sync, leaving index marked stale")
            return False

        self.last_sync_at = ensure_aware(as_of) if as_of else self.clock()
        self._persist()
        logger.debug(f"Marked synced at {self.last_sync_at.isoformat()}")
        return True

    def invalidate(self) -> None:
        """Force the next should_sync() to return True"""
        if self.last_sync_at is not None:
            logger.info("Freshness state invalidated")
        self.generation += 1
        self.last_sync_at = None
        self._persist()

    def load(self) -> None:
        """Read the persisted timestamp, ignoring unreadable files"""
        if self.state_path is None or not self.state_path.exists():
            return

        try:
            data = json.loads(self.state_path.read_text())
            raw = data.get("last_sync_at")
            self.last_sync_at = ensure_aware(date_parser.isoparse(raw)) if raw else None
        except Exception as e:
            logger.warning(f"Failed to load freshness state from {self.state_path}: {e}")
            self.last_sync_at = None

    def _persist(self) -> None:
        if self.state_path is None:
            return

        data = {"last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None}
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            self.state_path.write_text(json.dumps(data))
        except OSError as e:
            logger.warning(f"Failed to persist freshness state to {self.state_path}: {e}")
