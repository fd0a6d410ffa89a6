from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings.
    Loads from environment variables or .env file.
    """
    PROJECT_NAME: str = "ProjectHub API"
    PROJECT_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    PORT: int = 8000

    DATABASE_URL: str = "sqlite+aiosqlite:///./projecthub.db"
    DATABASE_ECHO: bool = False
    CREATE_TABLES_ON_STARTUP: bool = True

    # Tokens are issued by the identity provider, we only decode them
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = False
    CACHE_TTL_SECONDS: int = 120

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_READS: str = "120/minute"
    RATE_LIMIT_WRITES: str = "60/minute"

    # Sentinel creator for projects created without a session user
    TEMP_USER_EMAIL: str = "temp@example.com"
    TEMP_USER_NAME: str = "Temporary User"

    LOG_LEVEL: str = "INFO"

    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
