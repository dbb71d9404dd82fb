"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This pattern keeps secrets out of source code — the .env file is
gitignored, and .env.example provides a safe template for developers.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Usage:
    from taskmanager.config import settings
    print(settings.DATABASE_URL)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Task Manager API.

    Every field has a default so the service (and the test suite) can start
    without a .env file. Production deployments override DATABASE_URL and,
    when the hardware allows it, raise the password hashing costs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Task Manager API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- HTTP ---
    API_V1_PREFIX: str = "/v1"
    # Origins allowed to make cross-origin requests (frontend URLs)
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    # --- Database ---
    # SQLite for local use; swap to a postgresql+asyncpg URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/tasks.db"

    # --- Password hashing (Argon2id) ---
    # Time cost in iterations, memory cost in KiB. Raising either makes every
    # login slower and every offline guess more expensive.
    PASSWORD_TIME_COST: int = 1
    PASSWORD_MEMORY_COST: int = 64 * 1024
    PASSWORD_PARALLELISM: int = 4
    PASSWORD_KEY_LENGTH: int = 32

    # --- API keys ---
    # Number of random bytes in a newly issued key (hex-encoded on the wire)
    API_KEY_BYTES: int = 32


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
