"""
Pydantic models for the ticket search & sync engine
"""

from ticket_search.models.schemas import (
    # Enums
    TicketStatus,
    Priority,
    DocumentType,

    # Assignment
    Assignment,
    UnassignedAssignment,
    UserAssignment,
    TeamAssignment,
    assignment_from_row,

    # Source-of-record rows
    Ticket,
    Comment,
    TeamRef,
    UserRef,

    # Query intent
    IntentFilters,
    QueryIntent,

    # Retrieval / response
    RetrievedCandidate,
    ChartPoint,
    AssistantResponse,
    SyncResult,
    SyncStatus,
)

__all__ = [
    # Enums
    "TicketStatus",
    "Priority",
    "DocumentType",

    # Assignment
    "Assignment",
    "UnassignedAssignment",
    "UserAssignment",
    "TeamAssignment",
    "assignment_from_row",

    # Source-of-record rows
    "Ticket",
    "Comment",
    "TeamRef",
    "UserRef",

    # Query intent
    "IntentFilters",
    "QueryIntent",

    # Retrieval / response
    "RetrievedCandidate",
    "ChartPoint",
    "AssistantResponse",
    "SyncResult",
    "SyncStatus",
]
