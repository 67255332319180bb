"""
Assistant Service - answers natural-language questions about tickets

Workflow:
1. Lazily sync the vector index (failures are logged, answering continues)
2. Analyze the question and retrieve candidates concurrently
3. Run the result processor over the candidates

Every failure is caught here once and turned into an apologetic answer.
"""
import asyncio
from typing import Optional

from ticket_search.models.schemas import AssistantResponse
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

ERROR_TEXT = "Sorry, I encountered an error processing your request."


class AssistantService:
    """Service layer for question answering"""

    def __init__(self, sync_engine, analyzer, retriever, processor):
        """
        Args:
            sync_engine: SyncEngine used for the lazy pre-answer sync
            analyzer: QueryAnalyzer
            retriever: Retriever
            processor: ResultProcessor
        """
        self.sync_engine = sync_engine
        self.analyzer = analyzer
        self.retriever = retriever
        self.processor = processor
        logger.info("AssistantService initialized")

    async def _analyze_and_retrieve(self, question: str):
        """Run intent analysis and retrieval concurrently; one failing cancels the other"""
        tasks = [
            asyncio.create_task(self.analyzer.analyze(question)),
            asyncio.create_task(self.retriever.retrieve(question)),
        ]
        try:
            intent, candidates = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        return intent, candidates

    async def answer(self, question: str, access_token: Optional[str] = None) -> AssistantResponse:
        """
        Answer a question

        Args:
            question: Free-text question
            access_token: Caller JWT (for "assigned to me" questions)

        Returns:
            AssistantResponse (never raises)
        """
        try:
            sync_result = await self.sync_engine.sync_all()
            if not sync_result.success:
                logger.warning(f"Answering from a stale index, sync failed: {sync_result.error}")

            intent, candidates = await self._analyze_and_retrieve(question)

            return await self.processor.process(candidates, intent, access_token=access_token)

        except Exception as e:
            logger.error(f"Error processing question: {e}", exc_info=True)
            return AssistantResponse(
                text=ERROR_TEXT,
                data=None,
                visual_type=None,
                is_html=False
            )
