"""
Synchronization API Routes

Provides endpoints for syncing tickets and comments to the vector index:
- Full sync (skipped when the index is fresh unless forced)
- Sync status monitoring
"""
import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query

from ticket_search.dependencies import get_sync_engine, get_vector_index
from ticket_search.models.schemas import SyncResult, SyncStatus
from ticket_search.services.sync_engine import SyncEngine
from ticket_search.utils.logger import get_logger

router = APIRouter(prefix="/api/v1/sync", tags=["sync"])
logger = get_logger(__name__)


@router.post("", response_model=SyncResult)
async def sync_tickets(
    force: bool = Query(False, description="Resync even if the index looks fresh"),
    sync_engine: SyncEngine = Depends(get_sync_engine)
):
    """
    Synchronize tickets and comments into the vector index

    Concurrent requests share the sync that is already running.

    Returns:
        SyncResult with sync statistics
    """
    result = await sync_engine.sync_all(force=force)
    if not result.success:
        logger.warning(f"Sync request failed: {result.error}")
    return result


@router.get("/status", response_model=SyncStatus)
async def get_sync_status(
    sync_engine: SyncEngine = Depends(get_sync_engine),
    vector_index=Depends(get_vector_index)
):
    """
    Get current synchronization status

    Returns:
        - Last successful sync timestamp
        - Whether a sync is running
        - Number of indexed documents
    """
    try:
        indexed = await asyncio.to_thread(vector_index.count)
    except Exception as e:
        logger.error(f"Failed to get sync status: {e}")
        raise HTTPException(
            status_code=503,
            detail=f"Failed to retrieve sync status: {str(e)}"
        )

    return SyncStatus(
        last_sync_at=sync_engine.tracker.last_sync_at,
        sync_in_progress=sync_engine.in_progress,
        indexed_documents=indexed
    )
