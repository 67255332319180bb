"""
Service providers

Services are built lazily, once per process, so importing the app does not
connect to Supabase, Qdrant or OpenAI. Routes receive them through FastAPI
dependencies, which tests replace with `app.dependency_overrides`.
"""
from datetime import timedelta
from functools import lru_cache

from ticket_search.config import get_settings
from ticket_search.repositories.ticket_repository import TicketRepository
from ticket_search.services.assistant import AssistantService
from ticket_search.services.freshness import FreshnessTracker
from ticket_search.services.query_analyzer import QueryAnalyzer
from ticket_search.services.result_processor import ResultProcessor
from ticket_search.services.retriever import Retriever
from ticket_search.services.sync_engine import SyncEngine


@lru_cache()
def get_freshness_tracker() -> FreshnessTracker:
    settings = get_settings()
    return FreshnessTracker(
        revalidate_after=timedelta(seconds=settings.freshness_window_seconds),
        state_path=settings.freshness_state_path or None
    )


@lru_cache()
def get_repository() -> TicketRepository:
    return TicketRepository()


@lru_cache()
def get_embedder():
    from ticket_search.services.embeddings import get_embedder as build_embedder
    return build_embedder(get_settings())


@lru_cache()
def get_vector_index():
    from ticket_search.services.vector_index import QdrantVectorIndex
    return QdrantVectorIndex()


@lru_cache()
def get_sync_engine() -> SyncEngine:
    return SyncEngine(
        repository=get_repository(),
        embedder=get_embedder(),
        vector_index=get_vector_index(),
        tracker=get_freshness_tracker()
    )


@lru_cache()
def get_assistant() -> AssistantService:
    from ticket_search.services.llm_service import LLMService

    settings = get_settings()
    return AssistantService(
        sync_engine=get_sync_engine(),
        analyzer=QueryAnalyzer(LLMService()),
        retriever=Retriever(get_embedder(), get_vector_index(), top_k=settings.retrieval_top_k),
        processor=ResultProcessor(get_repository())
    )
