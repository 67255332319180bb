"""
Assistant API Routes

Answers natural-language questions about tickets with text and optional
chart data.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, Field

from ticket_search.dependencies import get_assistant
from ticket_search.models.schemas import AssistantResponse
from ticket_search.services.assistant import AssistantService

router = APIRouter(prefix="/api/v1/assistant", tags=["assistant"])


class QuestionRequest(BaseModel):
    """Question asked by an agent"""
    question: str = Field(..., min_length=1, max_length=2000, description="Free-text question")


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


@router.post("/query", response_model=AssistantResponse)
async def ask_question(
    request: QuestionRequest,
    authorization: Optional[str] = Header(None),
    assistant: AssistantService = Depends(get_assistant)
):
    """
    Answer a question about tickets

    - Refreshes the vector index when it is stale
    - Extracts a query intent and retrieves similar tickets
    - Returns text (HTML links for ticket lists) and chart data

    Errors are returned as an apologetic answer, never as HTTP errors.
    """
    return await assistant.answer(request.question, access_token=bearer_token(authorization))
