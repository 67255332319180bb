"""
Change Listener - Supabase Realtime subscription

Listens to postgres_changes on the tickets and comments tables and
invalidates the freshness tracker whenever a row actually changed, so
the next question triggers a full resync.
"""
from typing import Any, Dict, Optional, Sequence

from ticket_search.services.freshness import FreshnessTracker
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

WATCHED_TABLES = ("tickets", "comments")


def _row_images(payload: Dict[str, Any]):
    """Extract (new, old) row images from a realtime payload"""
    data = payload.get("data", payload) if isinstance(payload, dict) else {}
    new = data.get("record", data.get("new"))
    old = data.get("old_record", data.get("old"))
    return new, old


class ChangeListener:
    """Invalidates freshness state on relevant row changes"""

    def __init__(
        self,
        realtime_client,
        tracker: FreshnessTracker,
        tables: Sequence[str] = WATCHED_TABLES,
        schema: str = "public",
        channel_name: str = "ticket-search-changes"
    ):
        """
        Args:
            realtime_client: Supabase AsyncClient (realtime capable)
            tracker: Freshness tracker to invalidate
            tables: Tables to watch
            schema: Postgres schema of the tables
            channel_name: Realtime channel name
        """
        self.client = realtime_client
        self.tracker = tracker
        self.tables = tuple(tables)
        self.schema = schema
        self.channel_name = channel_name
        self._channel: Optional[Any] = None

    @property
    def subscribed(self) -> bool:
        return self._channel is not None

    def handle_change(self, payload: Dict[str, Any]) -> bool:
        """
        Realtime callback

        Returns:
            True if the tracker was invalidated
        """
        new, old = _row_images(payload)
        if new == old:
            logger.debug("Ignoring change event with identical row images")
            return False

        logger.info("Source-of-record changed, invalidating vector index freshness")
        self.tracker.invalidate()
        return True

    async def start(self) -> None:
        """Subscribe to change events (no-op when already subscribed)"""
        if self._channel is not None:
            return

        channel = self.client.channel(self.channel_name)
        for table in self.tables:
            channel.on_postgres_changes(
                "*",
                schema=self.schema,
                table=table,
                callback=self.handle_change
            )
        await channel.subscribe()
        self._channel = channel
        logger.info(f"Subscribed to changes on {', '.join(self.tables)}")

    async def stop(self) -> None:
        """Release the subscription exactly once; repeated calls are no-ops"""
        channel, self._channel = self._channel, None
        if channel is None:
            return

        try:
            await self.client.remove_channel(channel)
            logger.info("Unsubscribed from change events")
        except Exception as e:
            logger.warning(f"Failed to remove realtime channel: {e}")
