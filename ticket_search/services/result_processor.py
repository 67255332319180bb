"""
Result Processor

Decision pipeline applied to retrieved candidates:
1. Keep ticket documents only (comments only help retrieval ranking)
2. Time filter (today / yesterday; updated_at for closed tickets)
3. Status filter
4. Team-members, team and individual assignment filters
5. Priority filter
6. Stable sort by priority rank
Then render a count/list answer, trend or distribution chart data, or a
generic summary.
"""
import asyncio
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Set

from ticket_search.models.schemas import (
    AssistantResponse,
    ChartPoint,
    IntentFilters,
    QueryIntent,
    RetrievedCandidate,
    TeamAssignment,
    UnassignedAssignment,
    UserAssignment,
    assignment_from_row,
)
from ticket_search.utils.dates import local_date, relative_date_label
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

ME = "me"

PRIORITY_RANK = {"urgent": 0, "high": 1, "medium": 2, "low": 3}
UNKNOWN_PRIORITY_RANK = 4

PRIORITY_GLYPHS = {
    "urgent": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🟢",
}
UNKNOWN_PRIORITY_GLYPH = "⚪️"

STATUS_COLORS = {
    "new": "#3b82f6",
    "open": "#f59e0b",
    "pending": "#8b5cf6",
    "resolved": "#10b981",
    "closed": "#6b7280",
}
UNKNOWN_STATUS_COLOR = "#9ca3af"

TIME_RANGE_LABELS = {
    "day": "today",
    "yesterday": "yesterday",
    "week": "this week",
    "month": "this month",
    "year": "this year",
}

UNASSIGNED_LABEL = "Unassigned"


def _meta(candidate: RetrievedCandidate, key: str) -> str:
    value = candidate.metadata.get(key)
    return "" if value is None else str(value)


def priority_rank(candidate: RetrievedCandidate) -> int:
    return PRIORITY_RANK.get(_meta(candidate, "priority").lower(), UNKNOWN_PRIORITY_RANK)


def sort_by_priority(candidates: List[RetrievedCandidate]) -> List[RetrievedCandidate]:
    """Stable: ties keep retrieval order"""
    return sorted(candidates, key=priority_rank)


def is_closed(status: Optional[str]) -> bool:
    return bool(status) and status.lower() == "closed"


def time_filter_target(time_range: str, today: date) -> Optional[date]:
    """
    Calendar day selected by a time range

    Only "day" and "yesterday" select a day; wider ranges select nothing.
    """
    if time_range == "day":
        return today
    if time_range == "yesterday":
        return today - timedelta(days=1)
    return None


def filter_by_time_range(
    candidates: List[RetrievedCandidate],
    time_range: str,
    status: Optional[str],
    today: date
) -> List[RetrievedCandidate]:
    """Keep tickets whose relevant date falls on the target day"""
    target = time_filter_target(time_range, today)
    if target is None:
        return []

    date_field = "updated_at" if is_closed(status) else "created_at"
    return [c for c in candidates if local_date(c.metadata.get(date_field)) == target]


def filter_by_field(candidates: List[RetrievedCandidate], field: str, value: str) -> List[RetrievedCandidate]:
    """Case-insensitive exact match"""
    wanted = value.lower()
    return [c for c in candidates if _meta(c, field).lower() == wanted]


def assigned_id(candidate: RetrievedCandidate) -> Optional[str]:
    """Raw assignee id as string, None when unassigned"""
    value = _meta(candidate, "assigned_to")
    return value or None


@dataclass
class AssigneeContext:
    """Resolved assignment filter used for filtering and sentences"""
    team_members_name: Optional[str] = None
    team_name: Optional[str] = None
    person_label: Optional[str] = None  # "you" or a display name


class ResultProcessor:
    """Applies a QueryIntent to retrieved candidates and renders a response"""

    def __init__(self, repository, clock: Callable[[], datetime] = datetime.now):
        """
        Args:
            repository: Source-of-record reads (team/user lookups, current user)
            clock: Returns the current local datetime
        """
        self.repository = repository
        self.clock = clock

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def process(
        self,
        candidates: List[RetrievedCandidate],
        intent: QueryIntent,
        access_token: Optional[str] = None
    ) -> AssistantResponse:
        """
        Filter, sort and render candidates for an intent

        Args:
            candidates: Retrieved candidates (tickets and comments)
            intent: Parsed query intent
            access_token: Caller JWT used to resolve assignedTo == "me"

        Returns:
            AssistantResponse
        """
        filters = intent.filters
        today = self.clock().date()
        # "distribution of priorities" names the grouping dimension
        group_by_priority = (
            intent.query_type == "distribution" and "priority" in filters.model_fields_set
        )

        tickets = [c for c in candidates if c.is_ticket]
        logger.debug(f"Processing {len(tickets)} ticket candidates of {len(candidates)}")

        if filters.time_range:
            tickets = filter_by_time_range(tickets, filters.time_range, filters.status, today)

        if filters.status:
            tickets = filter_by_field(tickets, "status", filters.status)

        context = AssigneeContext()

        if filters.assigned_to_team_members:
            context.team_members_name = filters.assigned_to_team_members
            member_ids = await self._team_member_ids(filters.assigned_to_team_members)
            tickets = [t for t in tickets if assigned_id(t) in member_ids]

        if filters.assigned_to_team:
            context.team_name = filters.assigned_to_team
            team_id = await self._resolve_team_id(filters.assigned_to_team)
            tickets = [
                t for t in tickets
                if team_id is not None
                and isinstance(self._assignment(t), TeamAssignment)
                and assigned_id(t) == team_id
            ]

        if filters.assigned_to:
            user_id, context.person_label = await self._resolve_person(
                filters.assigned_to, access_token
            )
            tickets = [t for t in tickets if user_id is not None and assigned_id(t) == user_id]

        if filters.priority and not group_by_priority:
            tickets = filter_by_field(tickets, "priority", filters.priority)

        tickets = sort_by_priority(tickets)

        visual_type = None if intent.visualization == "none" else intent.visualization

        if intent.query_type in ("count", "list"):
            text = await self._render_tickets(tickets, filters, context, today)
            return AssistantResponse(text=text, data=None, visual_type=visual_type)

        if intent.query_type == "trend":
            data = self._trend(tickets, today)
            text = (
                "Here's the trend of tickets over time:" if data
                else self._empty_sentence(filters, context)
            )
            return AssistantResponse(text=text, data=data or None, visual_type=visual_type)

        if intent.query_type == "distribution":
            field = "priority" if group_by_priority else "status"
            data = self._distribution(tickets, field)
            text = (
                f"Here's the distribution of tickets by {field}:" if data
                else self._empty_sentence(filters, context)
            )
            return AssistantResponse(text=text, data=data or None, visual_type=visual_type)

        count = len(tickets)
        return AssistantResponse(
            text=f"Found {count} ticket{'' if count == 1 else 's'} matching your query.",
            data=None,
            visual_type=visual_type
        )

    # ------------------------------------------------------------------
    # Assignment resolution
    # ------------------------------------------------------------------

    @staticmethod
    def _assignment(candidate: RetrievedCandidate):
        return assignment_from_row(
            candidate.metadata.get("assignee_type"),
            candidate.metadata.get("assigned_to")
        )

    async def _resolve_team_id(self, name: str) -> Optional[str]:
        team = await self.repository.find_team_by_name(name)
        if team is None:
            logger.info(f"No team matches '{name}'")
            return None
        return str(team.id)

    async def _team_member_ids(self, name: str) -> Set[str]:
        team_id = await self._resolve_team_id(name)
        if team_id is None:
            return set()
        return {str(member_id) for member_id in await self.repository.list_team_members(team_id)}

    async def _resolve_person(self, value: str, access_token: Optional[str]):
        """
        Resolve an assignedTo filter

        Returns:
            (user id or None, label used in sentences)
        """
        if value.lower() == ME:
            user_id = await self.repository.current_user_id(access_token)
            return (str(user_id) if user_id is not None else None), "you"

        user = await self.repository.find_user_by_name_prefix(value)
        if user is None:
            logger.info(f"No person matches '{value}'")
            return None, value
        return str(user.id), user.full_name or value

    async def _assignee_name(self, candidate: RetrievedCandidate) -> str:
        assignment = self._assignment(candidate)
        if isinstance(assignment, UnassignedAssignment):
            return UNASSIGNED_LABEL
        if isinstance(assignment, UserAssignment):
            user = await self.repository.get_user_by_id(assignment.id)
            return (user.full_name if user and user.full_name else UNASSIGNED_LABEL)
        team = await self.repository.get_team_by_id(assignment.id)
        return f"{team.name} team" if team else UNASSIGNED_LABEL

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def _render_tickets(
        self,
        tickets: List[RetrievedCandidate],
        filters: IntentFilters,
        context: AssigneeContext,
        today: date
    ) -> str:
        if not tickets:
            return self._empty_sentence(filters, context)

        # Fan out assignee lookups; the sort above fixes the output order
        assignee_names = await asyncio.gather(*(self._assignee_name(t) for t in tickets))

        lines = [self._header(len(tickets), filters, context)]
        for ticket, assignee in zip(tickets, assignee_names):
            lines.append(self._ticket_line(ticket, assignee, today))
        return "\n".join(lines)

    @staticmethod
    def _ticket_line(ticket: RetrievedCandidate, assignee: str, today: date) -> str:
        ticket_id = _meta(ticket, "id")
        subject = _meta(ticket, "subject") or f"Ticket #{ticket_id}"
        priority = _meta(ticket, "priority").lower()
        status = _meta(ticket, "status")
        glyph = PRIORITY_GLYPHS.get(priority, UNKNOWN_PRIORITY_GLYPH)
        color = STATUS_COLORS.get(status.lower(), UNKNOWN_STATUS_COLOR)

        created = local_date(ticket.metadata.get("created_at"))
        created_label = relative_date_label(created, today) if created else "on an unknown date"

        return (
            f'- {glyph} <a href="/tickets/{ticket_id}" target="_blank" '
            f'class="text-primary hover:underline">{subject}</a> '
            f'<span style="color: {color}">({status or "unknown"})</span> '
            f"- {assignee} - Created {created_label}"
        )

    @staticmethod
    def _assignment_phrase(context: AssigneeContext) -> Optional[str]:
        if context.team_members_name:
            return f"assigned to members of the {context.team_members_name} team"
        if context.team_name:
            return f"assigned to the {context.team_name} team"
        if context.person_label:
            return f"assigned to {context.person_label}"
        return None

    def _header(self, count: int, filters: IntentFilters, context: AssigneeContext) -> str:
        singular = count == 1
        noun = "ticket" if singular else "tickets"
        when = TIME_RANGE_LABELS.get(filters.time_range) if filters.time_range else None
        status = filters.status
        parts = []

        if when:
            verb = "was" if singular else "were"
            phrase = f"{'closed' if is_closed(status) else 'created'} {when}"
            if status and not is_closed(status):
                phrase += f" with status {status}"
            parts.append(phrase)
        else:
            verb = "is" if singular else "are"
            if status:
                parts.append(status)

        assignment = self._assignment_phrase(context)
        if assignment:
            parts.append(assignment)

        if not parts:
            return f"{count} {noun} {'matches' if singular else 'match'} your query:"
        return f"{count} {noun} {verb} {' and '.join(parts)}:"

    def _empty_sentence(self, filters: IntentFilters, context: AssigneeContext) -> str:
        """Deterministic 'no tickets' sentence for the most specific filter"""
        when = TIME_RANGE_LABELS.get(filters.time_range) if filters.time_range else None
        status = filters.status
        event = "closed" if is_closed(status) else "created"

        if context.team_members_name:
            return f"No tickets are currently assigned to members of the {context.team_members_name} team."
        if context.team_name:
            return f"No tickets are currently assigned to the {context.team_name} team."
        if context.person_label:
            if when:
                return f"No tickets {event} {when} were assigned to {context.person_label}."
            return f"No tickets are currently assigned to {context.person_label}."
        if when:
            if status and not is_closed(status):
                return f"No {status} tickets were created {when}."
            return f"No tickets were {event} {when}."
        if status:
            return f"No {status} tickets were found."
        return "No tickets match your query."

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    @staticmethod
    def _trend(tickets: List[RetrievedCandidate], today: date) -> List[ChartPoint]:
        """Ticket counts per creation day, oldest first"""
        per_day: Counter = Counter()
        undated = 0
        for ticket in tickets:
            day = local_date(ticket.metadata.get("created_at"))
            if day is None:
                undated += 1
            else:
                per_day[day] += 1

        data = [
            ChartPoint(name=relative_date_label(day, today), value=count)
            for day, count in sorted(per_day.items())
        ]
        if undated:
            data.append(ChartPoint(name="unknown", value=undated))
        return data

    @staticmethod
    def _distribution(tickets: List[RetrievedCandidate], field: str) -> List[ChartPoint]:
        counts: Dict[str, int] = {}
        for ticket in tickets:
            key = _meta(ticket, field) or "unknown"
            counts[key] = counts.get(key, 0) + 1
        return [ChartPoint(name=name, value=value) for name, value in counts.items()]
