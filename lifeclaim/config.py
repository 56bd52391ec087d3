"""Application configuration management."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Settings
    app_name: str = "LifeClaim Adjudicator"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Storage Settings
    database_url: str = Field(
        default="sqlite+aiosqlite:///./lifeclaim.db",
        description="SQLAlchemy async database URL for policies and claims"
    )
    database_echo: bool = False  # SQL query logging
    blob_storage_dir: Path = Field(
        default=Path("./blob_storage"),
        description="Directory where uploaded claim documents are written"
    )

    # Ollama Settings
    ollama_host: str = "http://localhost:11434"
    ocr_model: str = Field(
        default="llama3.2-vision",
        description="Vision model used to transcribe scanned documents"
    )
    oracle_model: str = Field(
        default="llama3.1",
        description="Tool-calling chat model that issues the fraud decision"
    )
    embedding_model: str = Field(
        default="nomic-embed-text",
        description="Embedding model backing the policy-rule knowledge base"
    )

    # Oracle Settings
    oracle_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Deadline for a single oracle decision, tool calls included"
    )
    oracle_max_tool_rounds: int = Field(
        default=6,
        ge=1,
        description="Maximum chat rounds the oracle may spend on tool calls"
    )

    # Knowledge Base Settings
    rules_top_k: int = 5
    rules_chunk_size: int = 300
    rules_chunk_overlap: int = 50

    # Adjudication Settings
    escalation_threshold: int = Field(
        default=2,
        ge=1,
        description="Prior rejections after which a resubmission goes to manual review"
    )

    model_config = SettingsConfigDict(
        env_prefix="LIFECLAIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings: Application settings loaded from environment
    """
    return Settings()
