"""
Embedding providers

- SentenceTransformerEmbedder: local model, loaded once per process (default)
- OpenAIEmbedder: OpenAI embeddings API

Both expose `async embed(text) -> List[float]` and `dimension`.
"""
import asyncio
from functools import lru_cache
from typing import List, Optional

from openai import AsyncOpenAI
from sentence_transformers import SentenceTransformer

from ticket_search.config import Settings, get_settings
from ticket_search.exceptions import EmbeddingError
from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

OPENAI_EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


@lru_cache(maxsize=None)
def get_embedding_model(model_name: str = "BAAI/bge-m3") -> SentenceTransformer:
    """Load a SentenceTransformer once per process and model name"""
    logger.info(f"Loading embedding model: {model_name}")
    return SentenceTransformer(model_name)


class SentenceTransformerEmbedder:
    """Embeds text with a locally loaded SentenceTransformer model"""

    def __init__(self, model_name: str = "BAAI/bge-m3", model: Optional[SentenceTransformer] = None):
        self.model_name = model_name
        self.model = model or get_embedding_model(model_name)
        self.dimension = self.model.get_sentence_embedding_dimension()
        logger.info(f"SentenceTransformerEmbedder ready ({model_name}, dim={self.dimension})")

    async def embed(self, text: str) -> List[float]:
        """
        Generate a normalized embedding for one text

        Encoding is CPU-bound, so it runs in a worker thread.
        """
        try:
            vector = await asyncio.to_thread(
                self.model.encode,
                text,
                normalize_embeddings=True,  # For cosine similarity
                show_progress_bar=False
            )
        except Exception as e:
            logger.error(f"Failed to generate embedding: {e}")
            raise EmbeddingError(f"Failed to generate embedding: {e}") from e
        return vector.tolist()


class OpenAIEmbedder:
    """Embeds text through the OpenAI embeddings API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "text-embedding-3-small",
        client: Optional[AsyncOpenAI] = None
    ):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.dimension = OPENAI_EMBEDDING_DIMENSIONS.get(model, 1536)
        logger.info(f"OpenAIEmbedder ready ({model}, dim={self.dimension})")

    async def embed(self, text: str) -> List[float]:
        try:
            response = await self.client.embeddings.create(model=self.model, input=text)
        except Exception as e:
            logger.error(f"OpenAI embedding request failed: {e}")
            raise EmbeddingError(f"OpenAI embedding request failed: {e}") from e
        return list(response.data[0].embedding)


def get_embedder(settings: Optional[Settings] = None):
    """
    Build the embedding provider selected by `embedding_provider`

    Raises:
        ValueError: Unknown provider name
    """
    settings = settings or get_settings()
    provider = settings.embedding_provider.lower()

    if provider == "openai":
        return OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.openai_embedding_model
        )
    if provider in ("sentence-transformers", "sentence_transformers", "local"):
        return SentenceTransformerEmbedder(model_name=settings.embedding_model)

    raise ValueError(f"Unknown embedding provider: {settings.embedding_provider}")
