"""
Ticket Semantic Search - FastAPI Backend
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ticket_search.config import get_settings
from ticket_search.dependencies import get_freshness_tracker
from ticket_search.middleware.logging_middleware import LoggingMiddleware
from ticket_search.routes import assistant, health, sync
from ticket_search.services.change_listener import ChangeListener
from ticket_search.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


async def start_change_listener():
    """Subscribe to Supabase Realtime; returns None when disabled or unavailable"""
    if not (settings.enable_change_listener and settings.supabase_configured):
        logger.info("Change listener disabled")
        return None

    try:
        from supabase import acreate_client

        realtime_client = await acreate_client(
            settings.supabase_url,
            settings.supabase_service_role_key or settings.supabase_key
        )
        listener = ChangeListener(realtime_client, get_freshness_tracker())
        await listener.start()
        return listener
    except Exception as e:
        # The 5 minute re-validation window still bounds staleness
        logger.warning(f"Change listener could not start: {e}")
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    listener = await start_change_listener()
    yield
    if listener is not None:
        await listener.stop()


app = FastAPI(
    title="Ticket Semantic Search",
    description="Semantic search and analytics over support tickets",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(assistant.router)
app.include_router(sync.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"message": "Ticket Semantic Search API", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
