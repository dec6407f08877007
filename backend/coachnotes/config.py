from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Coach notes search service settings.

    All values are loaded from environment variables.
    A .env file in the backend directory is also supported.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Database ---
    DATABASE_URL: str = "postgresql+asyncpg://coachnotes:coachnotes@db:5432/coachnotes"

    # --- JWT ---
    JWT_SECRET: str = "change-this-secret-key"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Search ---
    SEARCH_TIMEOUT_SECONDS: float = 10.0  # Per store query; 0 disables the deadline
    SUGGESTION_DEFAULT_LIMIT: int = 10
    POPULAR_TAGS_DEFAULT_LIMIT: int = 20

    # --- HTTP ---
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver."""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def search_timeout(self) -> float | None:
        """Search deadline in seconds, or None when disabled."""
        return self.SEARCH_TIMEOUT_SECONDS if self.SEARCH_TIMEOUT_SECONDS > 0 else None


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()
