"""
Configuration management for the Kettle graph parser.
"""
import os
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings and configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KETTLE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # System Settings
    output_directory: str = Field(default="./output")
    log_level: str = Field(default="INFO")

    # Parsing Settings
    max_workers: int = Field(default=0, ge=0)  # 0 = parse sequentially
    default_position: int = Field(default=100)

    # Dependency Analysis
    dependency_rules_file: Optional[str] = Field(default=None)

    # Summarization Chunking
    max_nodes_per_chunk: int = Field(default=10, ge=1)


# Global settings instance
settings = Settings()


def ensure_directories():
    """Ensure required directories exist."""
    os.makedirs(settings.output_directory, exist_ok=True)
