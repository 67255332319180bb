"""
Ticket Semantic Search - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # LLM
    openai_api_key: str = ""
    openai_chat_model: str = "gpt-4o-mini"

    # Qdrant
    qdrant_host: str = "localhost"
    qdrant_port: int = 6333
    qdrant_api_key: str = ""
    qdrant_use_https: bool = False
    qdrant_collection: str = "ticket_documents"

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""

    # Embeddings
    embedding_provider: str = "sentence-transformers"  # sentence-transformers | openai
    embedding_model: str = "BAAI/bge-m3"
    openai_embedding_model: str = "text-embedding-3-small"

    # Retrieval / sync
    retrieval_top_k: int = 100
    freshness_window_seconds: int = 300
    freshness_state_path: str = ".ticket_search_sync.json"
    enable_change_listener: bool = True

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    @property
    def QDRANT_URL(self) -> str:
        """Construct Qdrant URL from host and port"""
        protocol = "https" if self.qdrant_use_https else "http"
        return f"{protocol}://{self.qdrant_host}:{self.qdrant_port}"

    @property
    def QDRANT_API_KEY(self) -> str:
        """Qdrant API key"""
        return self.qdrant_api_key

    @property
    def supabase_configured(self) -> bool:
        """True when a Supabase project URL and key are present"""
        return bool(self.supabase_url and (self.supabase_service_role_key or self.supabase_key))


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
