"""
Business Logic Services
"""
from .assistant import AssistantService
from .change_listener import ChangeListener
from .freshness import FreshnessTracker
from .query_analyzer import QueryAnalyzer
from .result_processor import ResultProcessor
from .retriever import Retriever
from .sync_engine import SyncEngine

__all__ = [
    "AssistantService",
    "ChangeListener",
    "FreshnessTracker",
    "QueryAnalyzer",
    "ResultProcessor",
    "Retriever",
    "SyncEngine",
]
