"""
Vector Index Service using Qdrant

Stores (document id, vector, flat metadata) triples and answers top-K
similarity queries. Document ids such as "ticket-42" are not valid Qdrant
point ids, so each one is mapped to a deterministic UUID and kept in the
payload under `document_id`.
"""
import asyncio
import uuid
from typing import List, Dict, Any, Optional

from qdrant_client import QdrantClient
from qdrant_client.models import Distance, VectorParams, PointStruct

from ticket_search.config import get_settings
from ticket_search.exceptions import VectorIndexError
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

DOCUMENT_ID_KEY = "document_id"
POINT_ID_NAMESPACE = uuid.UUID("6f1c1f38-2b7e-4f3e-9d8e-6a0f4c2b9e11")


def point_id_for(document_id: str) -> str:
    """Deterministic Qdrant point id for a document id"""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, document_id))


class QdrantVectorIndex:
    """Qdrant-backed vector index for ticket and comment documents"""

    def __init__(
        self,
        collection_name: Optional[str] = None,
        qdrant_url: Optional[str] = None,
        qdrant_api_key: Optional[str] = None,
        client: Optional[QdrantClient] = None
    ):
        """
        Initialize Qdrant client

        Args:
            collection_name: Target collection (default from env)
            qdrant_url: Qdrant server URL (default from env)
            qdrant_api_key: Qdrant API key (default from env)
            client: Pre-built client (tests)
        """
        self.collection_name = collection_name or settings.qdrant_collection
        self.qdrant_url = qdrant_url or settings.QDRANT_URL
        self.qdrant_api_key = qdrant_api_key or settings.QDRANT_API_KEY or None

        self.client = client or QdrantClient(
            url=self.qdrant_url,
            api_key=self.qdrant_api_key
        )
        self._collection_ready = False
        logger.info(f"QdrantVectorIndex initialized for collection '{self.collection_name}'")

    def ensure_collection(self, dimension: int, distance: Distance = Distance.COSINE) -> bool:
        """
        Create the collection if it does not exist yet

        Args:
            dimension: Embedding dimension (must match the embedder)
            distance: Distance metric

        Returns:
            True if collection exists or was created
        """
        if self._collection_ready:
            return True

        try:
            collections = self.client.get_collections().collections
            if not any(col.name == self.collection_name for col in collections):
                self.client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=VectorParams(size=dimension, distance=distance)
                )
                logger.info(f"Created collection '{self.collection_name}' (dim={dimension})")
            self._collection_ready = True
            return True

        except Exception as e:
            logger.error(f"Failed to ensure collection '{self.collection_name}': {e}")
            raise VectorIndexError(f"Failed to ensure collection: {e}") from e

    async def upsert(self, documents: List[Dict[str, Any]]) -> bool:
        """
        Upsert documents

        Args:
            documents: List of dicts with structure:
                {
                    "id": "ticket-42",
                    "vector": [...],
                    "metadata": {"type": "ticket", "status": "open", ...}
                }

        Returns:
            True if successful
        """
        try:
            points = [
                PointStruct(
                    id=point_id_for(doc["id"]),
                    vector=doc["vector"],
                    payload={**doc.get("metadata", {}), DOCUMENT_ID_KEY: doc["id"]}
                )
                for doc in documents
            ]

            await asyncio.to_thread(
                self.client.upsert,
                collection_name=self.collection_name,
                points=points
            )

            logger.debug(f"Upserted {len(points)} points to '{self.collection_name}'")
            return True

        except Exception as e:
            logger.error(f"Failed to upsert to '{self.collection_name}': {e}")
            raise VectorIndexError(f"Failed to upsert documents: {e}") from e

    async def query(
        self,
        vector: List[float],
        top_k: int = 100,
        include_metadata: bool = True
    ) -> List[Dict[str, Any]]:
        """
        Top-K similarity query

        Args:
            vector: Query vector
            top_k: Number of results to return
            include_metadata: Return payloads with the hits

        Returns:
            List of {"id", "score", "metadata"} dictionaries
        """
        try:
            if not self._collection_ready and not await asyncio.to_thread(
                self.client.collection_exists, self.collection_name
            ):
                logger.info(f"Collection '{self.collection_name}' does not exist yet, nothing to search")
                return []

            response = await asyncio.to_thread(
                self.client.query_points,
                collection_name=self.collection_name,
                query=vector,
                limit=top_k,
                with_payload=True,
                with_vectors=False
            )
        except Exception as e:
            logger.error(f"Search failed in '{self.collection_name}': {e}")
            raise VectorIndexError(f"Similarity query failed: {e}") from e

        results = []
        for hit in response.points:
            payload = dict(hit.payload or {})
            document_id = payload.pop(DOCUMENT_ID_KEY, str(hit.id))
            results.append({
                "id": document_id,
                "score": hit.score,
                "metadata": payload if include_metadata else {}
            })

        logger.info(f"Found {len(results)} results in '{self.collection_name}'")
        return results

    def count(self) -> int:
        """Number of indexed documents"""
        try:
            return self.client.count(collection_name=self.collection_name, exact=True).count
        except Exception as e:
            logger.error(f"Failed to count points in '{self.collection_name}': {e}")
            raise VectorIndexError(f"Failed to count documents: {e}") from e
