"""
Exceptions
==========

Failure taxonomy of the search & sync engine.

Each external collaborator (Supabase, the embedding provider, Qdrant, the
completion service) has its own error type so the question-answering
boundary and the sync engine can decide how to degrade.
"""
from typing import Optional


class SearchEngineError(Exception):
    """Base exception for all search engine errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class SourceReadError(SearchEngineError):
    """Relational read or RPC against the source-of-record failed."""


class EmbeddingError(SearchEngineError):
    """Embedding provider failed to produce a vector."""


class VectorIndexError(SearchEngineError):
    """Upsert or similarity query against the vector index failed."""


class IntentParseError(SearchEngineError):
    """Completion service returned output that is not a valid query intent."""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        self.raw_output = raw_output
        super().__init__(message, {"raw_output": raw_output} if raw_output is not None else None)
