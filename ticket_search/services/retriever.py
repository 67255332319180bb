"""
Retrieval Stage - embeds a question and fetches similar documents
"""
from typing import List

from ticket_search.models.schemas import RetrievedCandidate
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TOP_K = 100


class Retriever:
    """Top-K similarity search over the vector index (no caching)"""

    def __init__(self, embedder, vector_index, top_k: int = DEFAULT_TOP_K):
        self.embedder = embedder
        self.vector_index = vector_index
        self.top_k = top_k

    async def retrieve(self, question: str) -> List[RetrievedCandidate]:
        """
        Retrieve candidates for a question

        Args:
            question: Free-text question

        Returns:
            Up to top_k candidates ordered by similarity
        """
        query_vector = await self.embedder.embed(question)
        hits = await self.vector_index.query(
            query_vector,
            top_k=self.top_k,
            include_metadata=True
        )
        candidates = [
            RetrievedCandidate(
                id=str(hit["id"]),
                score=hit["score"],
                metadata=hit.get("metadata") or {}
            )
            for hit in hits
        ]
        logger.info(f"Retrieved {len(candidates)} candidates")
        return candidates
