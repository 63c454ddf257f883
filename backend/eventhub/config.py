"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./eventhub.db"
    SQL_ECHO: bool = False
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # JWT
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # In-process cache
    CACHE_MAX_ENTRIES: int = 1000
    CACHE_TTL_SECONDS: int = 600
    TOKEN_BLACKLIST_TTL_SECONDS: int = 86400

    # Rate limiting for auth endpoints
    AUTH_RATE_LIMIT: str = "100/minute"

    class Config:
        env_file = ".env"


settings = Settings()
