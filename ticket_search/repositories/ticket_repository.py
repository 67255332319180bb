"""
Ticket Repository - read-only access to the source-of-record

Features:
- Tickets with nested comments in a single read
- Latest mutation timestamp for the freshness dirty-check
- Team / people directory lookups used by assignment filters
- Current authenticated user resolution via Supabase auth
"""
import asyncio
from datetime import datetime
from typing import Any, List, Optional, Union

from dateutil import parser as date_parser

from ticket_search.config import get_settings
from ticket_search.exceptions import SourceReadError
from ticket_search.models.schemas import Ticket, TeamRef, UserRef
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

TICKET_COLUMNS = (
    "id, subject, description, status, priority, created_at, updated_at, "
    "creator_id, assignee_type, assigned_to, "
    "comments ( id, content, created_at, author_id )"
)


class TicketRepository:
    """Repository for tickets, comments, teams and profiles"""

    def __init__(self, supabase_client=None):
        """
        Initialize repository with Supabase client

        Args:
            supabase_client: Supabase client instance (uses default if None)
        """
        if supabase_client is None:
            from supabase import create_client
            self.client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key or settings.supabase_key
            )
        else:
            self.client = supabase_client

        self.tickets_table = "tickets"
        self.teams_table = "teams"
        self.team_members_table = "team_members"
        self.profiles_table = "profiles"
        logger.info("TicketRepository initialized")

    async def _execute(self, operation: str, query) -> List[dict]:
        """Run a query builder off the event loop and wrap client errors as SourceReadError"""
        try:
            response = await asyncio.to_thread(query.execute)
        except Exception as e:
            logger.error(f"Failed to {operation}: {e}")
            raise SourceReadError(f"Failed to {operation}: {e}") from e
        return response.data or []

    async def list_tickets(self) -> List[Ticket]:
        """
        Fetch every ticket with its comments

        Returns:
            List of Tickets with nested comments
        """
        rows = await self._execute(
            "list tickets",
            self.client.table(self.tickets_table).select(TICKET_COLUMNS)
        )
        tickets = []
        for row in rows:
            for comment in row.get("comments") or []:
                comment.setdefault("ticket_id", row.get("id"))
            tickets.append(Ticket(**row))

        logger.info(f"Fetched {len(tickets)} tickets")
        return tickets

    async def latest_mutation_timestamp(self) -> Optional[datetime]:
        """
        Most recent updated_at across the tickets table

        Returns:
            Timestamp, or None when the table is empty
        """
        rows = await self._execute(
            "read latest ticket mutation",
            self.client.table(self.tickets_table)
                .select("updated_at")
                .order("updated_at", desc=True)
                .limit(1)
        )
        if not rows or not rows[0].get("updated_at"):
            return None
        return date_parser.isoparse(rows[0]["updated_at"])

    async def list_team_members(self, team_id: Union[int, str]) -> List[str]:
        """
        User ids of every member of a team

        Args:
            team_id: Team id

        Returns:
            Member user ids as strings
        """
        rows = await self._execute(
            f"list members of team {team_id}",
            self.client.table(self.team_members_table)
                .select("user_id")
                .eq("team_id", team_id)
        )
        return [str(row["user_id"]) for row in rows if row.get("user_id") is not None]

    async def find_team_by_name(self, name: str) -> Optional[TeamRef]:
        """Case-insensitive substring match on team name, first match wins"""
        rows = await self._execute(
            f"find team '{name}'",
            self.client.table(self.teams_table)
                .select("id, name")
                .ilike("name", f"%{name}%")
                .limit(1)
        )
        return TeamRef(**rows[0]) if rows else None

    async def get_team_by_id(self, team_id: Union[int, str]) -> Optional[TeamRef]:
        rows = await self._execute(
            f"get team {team_id}",
            self.client.table(self.teams_table)
                .select("id, name")
                .eq("id", team_id)
                .limit(1)
        )
        return TeamRef(**rows[0]) if rows else None

    async def find_user_by_name_prefix(self, name: str) -> Optional[UserRef]:
        """Case-insensitive substring match on full name, first match wins"""
        rows = await self._execute(
            f"find user '{name}'",
            self.client.table(self.profiles_table)
                .select("id, full_name")
                .ilike("full_name", f"%{name}%")
                .limit(1)
        )
        return UserRef(**rows[0]) if rows else None

    async def get_user_by_id(self, user_id: Union[int, str]) -> Optional[UserRef]:
        rows = await self._execute(
            f"get user {user_id}",
            self.client.table(self.profiles_table)
                .select("id, full_name")
                .eq("id", user_id)
                .limit(1)
        )
        return UserRef(**rows[0]) if rows else None

    async def current_user_id(self, access_token: Optional[str] = None) -> Optional[str]:
        """
        Id of the authenticated user

        Args:
            access_token: JWT of the caller (falls back to the client session)

        Returns:
            User id, or None when nobody is signed in
        """
        try:
            response: Any = await asyncio.to_thread(self.client.auth.get_user, access_token)
        except Exception as e:
            logger.error(f"Failed to resolve current user: {e}")
            raise SourceReadError(f"Failed to resolve current user: {e}") from e

        user = getattr(response, "user", None)
        return str(user.id) if user is not None else None
