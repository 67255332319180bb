"""
Sync Engine

Rebuilds the vector index from the source-of-record:
1. Read the latest ticket mutation timestamp
2. Skip when the freshness tracker says the index is current
3. Fetch every ticket with its comments in one read
4. Embed and upsert one document per ticket ("ticket-<id>") and per
   comment ("comment-<id>") with flat scalar metadata
5. Mark the tracker synced once every upsert succeeded

Any failure aborts the run without marking the tracker, so the next
call retries the full sync. Concurrent callers share one in-flight run;
a forced call during a run queues a fresh run after it.
"""
import asyncio
from typing import Any, Dict, Optional, Tuple

from ticket_search.models.schemas import (
    Comment,
    DocumentType,
    SyncResult,
    Ticket,
    UnassignedAssignment,
)
from ticket_search.services.freshness import FreshnessTracker
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)


def _scalar(value: Any) -> str:
    """Vector index metadata rejects nulls and nested objects"""
    return "" if value is None else str(value)


def build_ticket_document(ticket: Ticket) -> Tuple[str, str, Dict[str, str]]:
    """
    Embeddable text and metadata for a ticket

    Returns:
        (document id, text to embed, metadata)
    """
    assignment = ticket.assignment
    if isinstance(assignment, UnassignedAssignment):
        assignment_text = "Unassigned"
    else:
        assignment_text = f"{assignment.kind} ({assignment.id})"

    text = "\n".join([
        f"Ticket ID: {ticket.id}",
        f"Subject: {_scalar(ticket.subject)}",
        f"Description: {_scalar(ticket.description)}",
        f"Status: {_scalar(ticket.status)}",
        f"Priority: {_scalar(ticket.priority)}",
        f"Created At: {_scalar(ticket.created_at)}",
        f"Updated At: {_scalar(ticket.updated_at)}",
        f"Assignment: {assignment_text}",
    ])

    metadata = {
        "type": DocumentType.TICKET.value,
        "id": _scalar(ticket.id),
        "subject": _scalar(ticket.subject),
        "description": _scalar(ticket.description),
        "status": _scalar(ticket.status),
        "priority": _scalar(ticket.priority),
        "created_at": _scalar(ticket.created_at),
        "updated_at": _scalar(ticket.updated_at),
        "creator_id": _scalar(ticket.creator_id),
        "assignee_type": _scalar(ticket.assignee_type),
        "assigned_to": _scalar(ticket.assigned_to),
    }
    return f"ticket-{ticket.id}", text, metadata


def build_comment_document(ticket: Ticket, comment: Comment) -> Tuple[str, str, Dict[str, str]]:
    """Embeddable text and metadata for a comment on a ticket"""
    text = "\n".join([
        f"Comment on Ticket {ticket.id}",
        f"Content: {_scalar(comment.content)}",
        f"Created At: {_scalar(comment.created_at)}",
    ])

    metadata = {
        "type": DocumentType.COMMENT.value,
        "id": _scalar(comment.id),
        "ticket_id": _scalar(ticket.id),
        "content": _scalar(comment.content),
        "created_at": _scalar(comment.created_at),
        "author_id": _scalar(comment.author_id),
    }
    return f"comment-{comment.id}", text, metadata


class SyncEngine:
    """Keeps the vector index consistent with the source-of-record"""

    def __init__(self, repository, embedder, vector_index, tracker: FreshnessTracker):
        """
        Args:
            repository: Source-of-record reads (TicketRepository)
            embedder: Embedding provider with `embed()` and `dimension`
            vector_index: Vector index with `ensure_collection()` and `upsert()`
            tracker: Freshness state shared with the change listener
        """
        self.repository = repository
        self.embedder = embedder
        self.vector_index = vector_index
        self.tracker = tracker
        self._inflight: Optional[asyncio.Task] = None
        logger.info("SyncEngine initialized")

    @property
    def in_progress(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def sync_all(self, force: bool = False) -> SyncResult:
        """
        Sync every ticket and comment into the vector index

        Args:
            force: Invalidate the freshness state first

        Returns:
            SyncResult (never raises)
        """
        if force:
            self.tracker.invalidate()

        if not self.in_progress:
            self._inflight = asyncio.create_task(self._run())
        elif force:
            # The running snapshot predates the invalidation
            logger.info("Sync in progress, queueing a forced resync after it")
            self._inflight = asyncio.create_task(self._run_after(self._inflight))
        else:
            logger.info("Sync already in progress, joining it")

        # Shield so a cancelled caller does not cancel the shared run
        return await asyncio.shield(self._inflight)

    async def _run_after(self, previous: asyncio.Task) -> SyncResult:
        await asyncio.wait([previous])
        return await self._run()

    async def _run(self) -> SyncResult:
        started_at = self.tracker.clock()
        generation = self.tracker.generation
        tickets_synced = 0
        comments_synced = 0

        try:
            latest_mutation = await self.repository.latest_mutation_timestamp()
            if not self.tracker.should_sync(latest_mutation):
                logger.info("Vector index is fresh, skipping sync")
                return SyncResult(success=True, skipped=True)

            tickets = await self.repository.list_tickets()
            logger.info(f"Syncing {len(tickets)} tickets to vector index")

            # Also for an empty source, so queries find an empty collection
            await asyncio.to_thread(self.vector_index.ensure_collection, self.embedder.dimension)

            for ticket in tickets:
                documents = []

                doc_id, text, metadata = build_ticket_document(ticket)
                documents.append({
                    "id": doc_id,
                    "vector": await self.embedder.embed(text),
                    "metadata": metadata
                })

                for comment in ticket.comments:
                    doc_id, text, metadata = build_comment_document(ticket, comment)
                    documents.append({
                        "id": doc_id,
                        "vector": await self.embedder.embed(text),
                        "metadata": metadata
                    })

                await self.vector_index.upsert(documents)
                tickets_synced += 1
                comments_synced += len(ticket.comments)

            self.tracker.mark_synced(as_of=started_at, generation=generation)

            logger.info(
                f"Sync completed: {tickets_synced} tickets, {comments_synced} comments"
            )
            return SyncResult(
                success=True,
                tickets_synced=tickets_synced,
                comments_synced=comments_synced,
                synced_at=started_at
            )

        except Exception as e:
            logger.error(f"Sync failed after {tickets_synced} tickets: {e}")
            return SyncResult(
                success=False,
                tickets_synced=tickets_synced,
                comments_synced=comments_synced,
                error=str(e)
            )
