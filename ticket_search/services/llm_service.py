"""
LLM Service - text completion wrapper

Provides a JSON-object completion call used by the query analyzer.
"""
from typing import Optional

from openai import AsyncOpenAI

from ticket_search.config import get_settings
from ticket_search.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


class LLMService:
    """OpenAI chat completion service"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        """
        Args:
            api_key: OpenAI API key (default from env)
            model: Chat model name (default from env)
            client: Pre-built AsyncOpenAI client (tests)
        """
        self.model = model or settings.openai_chat_model
        self.client = client or AsyncOpenAI(api_key=api_key or settings.openai_api_key)
        logger.info(f"LLMService initialized ({self.model})")

    async def complete_json(self, system_instruction: str, user_message: str) -> str:
        """
        Run a completion constrained to a JSON object

        Args:
            system_instruction: System prompt
            user_message: User turn

        Returns:
            Raw JSON string returned by the model
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": user_message}
                ],
                response_format={"type": "json_object"},
                temperature=0
            )
        except Exception as e:
            logger.error(f"Completion request failed: {e}")
            raise

        return response.choices[0].message.content or ""
