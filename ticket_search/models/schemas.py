"""
Pydantic models for the ticket search & sync engine

This module contains the schemas shared by the sync engine, the query
analyzer and the result processor:
- Source-of-record rows (tickets, comments, teams, people)
- Assignment tagged union converted at the source-of-record boundary
- Query intent produced by the completion service (strictly validated)
- Retrieval candidates, chart points and assistant responses
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List, Literal, Union

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing_extensions import Annotated


# ============================================================================
# Enums
# ============================================================================

class TicketStatus(str, Enum):
    """Valid ticket statuses"""
    NEW = "new"
    OPEN = "open"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Priority(str, Enum):
    """Valid ticket priorities"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class DocumentType(str, Enum):
    """Kinds of documents stored in the vector index"""
    TICKET = "ticket"
    COMMENT = "comment"


# ============================================================================
# Assignment (tagged union)
# ============================================================================

class UnassignedAssignment(BaseModel):
    """Ticket has no assignee"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class UserAssignment(BaseModel):
    """Ticket assigned to an individual agent"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    id: str


class TeamAssignment(BaseModel):
    """Ticket assigned to a team"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["team"] = "team"
    id: str


Assignment = Annotated[
    Union[UnassignedAssignment, UserAssignment, TeamAssignment],
    Field(discriminator="kind")
]


def assignment_from_row(assignee_type: Any, assigned_to: Any) -> Assignment:
    """
    Build an Assignment from the loosely typed (assignee_type, assigned_to) pair.

    A non-empty assigned_to without the "team" type is a user assignment.
    """
    if assigned_to is None or str(assigned_to).strip() == "":
        return UnassignedAssignment()
    if str(assignee_type or "").lower() == "team":
        return TeamAssignment(id=str(assigned_to))
    return UserAssignment(id=str(assigned_to))


# ============================================================================
# Source-of-record rows
# ============================================================================

class Comment(BaseModel):
    """Comment attached to a ticket"""
    model_config = ConfigDict(from_attributes=True)

    id: Union[int, str]
    ticket_id: Optional[Union[int, str]] = None
    content: Optional[str] = None
    created_at: Optional[str] = None
    author_id: Optional[Union[int, str]] = None


class Ticket(BaseModel):
    """
    Ticket row as read from the `tickets` table with nested comments.

    Timestamps are kept as the ISO strings returned by Supabase so the
    indexed metadata mirrors the row verbatim.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Union[int, str]
    subject: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    creator_id: Optional[Union[int, str]] = None
    assignee_type: Optional[str] = None
    assigned_to: Optional[Union[int, str]] = None
    comments: List[Comment] = Field(default_factory=list)

    @field_validator("comments", mode="before")
    @classmethod
    def default_comments(cls, v: Any) -> Any:
        return v or []

    @property
    def assignment(self) -> Assignment:
        return assignment_from_row(self.assignee_type, self.assigned_to)


class TeamRef(BaseModel):
    """Team identity"""
    id: Union[int, str]
    name: str


class UserRef(BaseModel):
    """Person from the people directory (`profiles` table)"""
    id: Union[int, str]
    full_name: Optional[str] = None


# ============================================================================
# Query intent
# ============================================================================

QueryType = Literal["count", "trend", "distribution", "list", "search"]
TimeRange = Literal["day", "yesterday", "week", "month", "year"]
Visualization = Literal["none", "bar", "line", "pie"]


class IntentFilters(BaseModel):
    """
    Filters extracted from a question.

    Unknown keys are rejected. Keys that were present in the completion
    output (even with a null value) are visible through `model_fields_set`.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    status: Optional[str] = None
    priority: Optional[str] = None
    time_range: Optional[TimeRange] = Field(None, alias="timeRange")
    assigned_to: Optional[str] = Field(None, alias="assignedTo")
    assigned_to_team: Optional[str] = Field(None, alias="assignedToTeam")
    assigned_to_team_members: Optional[str] = Field(None, alias="assignedToTeamMembers")

    @field_validator(
        "status", "priority", "time_range", "assigned_to",
        "assigned_to_team", "assigned_to_team_members",
        mode="before"
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class QueryIntent(BaseModel):
    """Structured representation of a question (immutable once parsed)"""
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    query_type: QueryType = Field(..., alias="queryType")
    filters: IntentFilters = Field(default_factory=IntentFilters)
    visualization: Visualization = "none"

    @field_validator("filters", mode="before")
    @classmethod
    def default_filters(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("visualization", mode="before")
    @classmethod
    def default_visualization(cls, v: Any) -> Any:
        return "none" if v is None else v


# ============================================================================
# Retrieval / response
# ============================================================================

class RetrievedCandidate(BaseModel):
    """Read-only projection of an indexed document returned by similarity search"""
    model_config = ConfigDict(frozen=True)

    id: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_ticket(self) -> bool:
        return self.metadata.get("type") == DocumentType.TICKET.value


class ChartPoint(BaseModel):
    """One bar/slice/point of chart data"""
    name: str
    value: int


class AssistantResponse(BaseModel):
    """Answer to a question, optionally with chart data"""
    text: str = Field(..., min_length=1)
    data: Optional[List[ChartPoint]] = None
    visual_type: Optional[str] = None
    is_html: bool = True


class SyncResult(BaseModel):
    """Outcome of a full sync run"""
    success: bool
    skipped: bool = False
    tickets_synced: int = 0
    comments_synced: int = 0
    error: Optional[str] = None
    synced_at: Optional[datetime] = None


class SyncStatus(BaseModel):
    """Current sync status"""
    last_sync_at: Optional[datetime] = None
    sync_in_progress: bool = False
    indexed_documents: int = 0
