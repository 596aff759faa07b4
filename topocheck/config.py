"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "Topocheck"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    cors_origins: list[str] = ["http://localhost:4200", "http://localhost:3000"]

    # Engine settings
    progress_interval: int = 100
    gap_buffer_distance: float = 2.0
    gap_buffer_quad_segs: int = 3

    # Input limits for the HTTP and CLI surfaces
    max_features_per_layer: int = 50_000


@lru_cache
def get_settings() -> Settings:
    return Settings()
