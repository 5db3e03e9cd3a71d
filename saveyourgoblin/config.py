"""
Configuration management for SaveYourGoblin
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # LLM Provider Configuration
    # "mock" skips the LLM entirely and serves keyword-driven sample content
    model_provider: Literal["openai", "generic", "mock"] = Field(default="openai")
    openai_api_base: str = Field(default="https://api.openai.com/v1")
    openai_api_key: str = Field(default="")
    model_name: str = Field(default="gpt-4o-mini")

    # Generation defaults
    default_temperature: float = Field(default=0.8)
    variation_temperature: float = Field(default=0.9)
    section_temperature: float = Field(default=0.8)
    stream_chunk_size: int = Field(
        default=50,
        ge=1,
        description="Characters per chunk when streaming a generated document",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_file: Optional[str] = Field(default=None)

    # Authentication
    api_token: str = Field(
        default="",
        description="Bearer token seeded for the default user on startup (empty disables seeding)",
    )
    default_user_name: str = Field(default="Game Master")

    # Database Configuration
    database_path: str = Field(
        default="data/saveyourgoblin.db",
        description="SQLite database file path for content, campaigns and session notes",
    )

    # Client Configuration
    client_base_url: str = Field(default="http://localhost:8000")
    client_timeout: float = Field(default=60.0)

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
