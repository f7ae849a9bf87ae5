import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration of the refinery dashboard service."""

    # --- General ---
    SERVICE_NAME: str = "Refinery Dashboard"
    VERSION: str = "1.0.0"
    ENV: str = os.getenv("ENV", "dev")

    # --- Database ---
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://postgres:postgres@db:5432/refinery"
    )
    DB_SCHEMA: str = os.getenv("DB_SCHEMA", "refinery")

    # --- Access control ---
    # user identity comes from the upstream auth proxy as X-User-Id
    AUTH_ENABLED: bool = True

    # --- Listing ---
    DEFAULT_PAGE_LIMIT: int = 500
    MAX_PAGE_LIMIT: int = 5000

    # --- Simulated data ---
    SIMULATION_SEED: int | None = None

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
