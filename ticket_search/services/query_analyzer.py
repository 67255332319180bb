"""
Query Analyzer

Turns a natural-language question into a QueryIntent by asking the
completion service for a JSON object that follows a fixed vocabulary.
The output is validated strictly; anything that does not fit raises
IntentParseError instead of falling back to a default intent.
"""
import json

from pydantic import ValidationError

from ticket_search.exceptions import IntentParseError
from ticket_search.models.schemas import QueryIntent
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_INSTRUCTION = """You are a helpful assistant that analyzes user queries about support ticket data.
Determine the type of analysis needed and what visualization would be most appropriate.

Query types:
- For queries about counts or numbers, use "count"
- For queries about changes over time, use "trend"
- For queries about distribution across categories, use "distribution"
- For queries asking to list or show specific tickets, use "list"
- For queries about tickets assigned to someone or to a team, use "list"
- For anything else, use "search"

Filters:
- status: one of "new", "open", "pending", "resolved", "closed"
- priority: one of "low", "medium", "high", "urgent"
- timeRange: "day" (today), "yesterday", "week", "month", "year"
- assignedTo: "me" when the user asks about their own tickets ("my tickets", "assigned to me"),
  otherwise the (partial) name of the person the tickets are assigned to
- assignedToTeam: name of a team the tickets are assigned to as a team
- assignedToTeamMembers: name of a team whose individual members the tickets are assigned to

Use only the keys listed above. Omit a filter or set it to null when the question does not mention it.

Return a JSON object with exactly this structure:
{
  "queryType": "count" | "trend" | "distribution" | "list" | "search",
  "filters": {
    "status": string | null,
    "priority": string | null,
    "timeRange": "day" | "yesterday" | "week" | "month" | "year" | null,
    "assignedTo": "me" | string | null,
    "assignedToTeam": string | null,
    "assignedToTeamMembers": string | null
  },
  "visualization": "none" | "bar" | "line" | "pie"
}

Example queries and responses:
"Show my tickets" -> {"queryType": "list", "filters": {"assignedTo": "me"}, "visualization": "none"}
"Any tickets assigned to me?" -> {"queryType": "list", "filters": {"assignedTo": "me"}, "visualization": "none"}
"Were any tickets from today assigned to me?" -> {"queryType": "list", "filters": {"assignedTo": "me", "timeRange": "day"}, "visualization": "none"}
"How many tickets were closed yesterday?" -> {"queryType": "count", "filters": {"status": "closed", "timeRange": "yesterday"}, "visualization": "none"}
"What tickets are assigned to Sarah?" -> {"queryType": "list", "filters": {"assignedTo": "Sarah"}, "visualization": "none"}
"Show tickets assigned to the billing team" -> {"queryType": "list", "filters": {"assignedToTeam": "billing"}, "visualization": "none"}
"What are the members of the approvers team working on?" -> {"queryType": "list", "filters": {"assignedToTeamMembers": "approvers"}, "visualization": "none"}
"Show me the distribution of ticket priorities" -> {"queryType": "distribution", "filters": {"priority": null}, "visualization": "pie"}
"How has the ticket volume changed over time?" -> {"queryType": "trend", "filters": {}, "visualization": "line"}"""


class QueryAnalyzer:
    """Extracts a structured QueryIntent from a question"""

    def __init__(self, llm_service):
        """
        Args:
            llm_service: Completion service with `complete_json(system, user)`
        """
        self.llm = llm_service

    async def analyze(self, question: str) -> QueryIntent:
        """
        Analyze a question

        Args:
            question: Free-text question

        Returns:
            Validated QueryIntent

        Raises:
            IntentParseError: Output was not JSON or did not match the schema
        """
        raw = await self.llm.complete_json(SYSTEM_INSTRUCTION, question)

        try:
            payload = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            logger.error(f"Completion output is not JSON: {raw!r}")
            raise IntentParseError(f"Completion output is not valid JSON: {e}", raw_output=raw) from e

        if not isinstance(payload, dict):
            raise IntentParseError("Completion output is not a JSON object", raw_output=raw)

        try:
            intent = QueryIntent.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Completion output does not match the intent schema: {e}")
            raise IntentParseError(f"Invalid query intent: {e}", raw_output=raw) from e

        logger.info(
            f"Analyzed question as {intent.query_type} with filters "
            f"{intent.filters.model_dump(by_alias=True, exclude_none=True)}"
        )
        return intent
