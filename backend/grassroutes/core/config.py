from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional


class Settings(BaseSettings):
    """
    Application settings, loaded from environment variables or a .env file.

    Covers the server, the database and Redis connections, the content data
    directory, progress merging, quiz sessions and the two external
    collaborators (Firebase Authentication and Stripe). Every field has a
    development default so the API can start without any secrets; features
    whose credentials are missing report themselves as unavailable.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=True
    )

    # Server
    BACKEND_PORT: int = 3001
    ENVIRONMENT: Literal["development", "production", "testing"] = "development"

    PROJECT_NAME: str = "mygrassroutes"
    API_V1_STR: str = "/api/v1"

    BACKEND_CORS_ORIGINS: List[str] = [
        "https://www.mygrassroutes.com",
        "https://mygrassroutes.com",
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    SECURITY_HEADERS_ENABLED: bool = True

    # Storage
    DATABASE_URL: str = "sqlite:///./grassroutes.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # Content
    DATA_DIR: str = str(Path(__file__).resolve().parent.parent / "data")
    CATALOG_FILENAME: str = "catalog.json"
    SEED_CONTENT_FILENAME: str = "seed_content.json"

    # Progress
    PROGRESS_MERGE_STRATEGY: Literal["prefer_remote", "latest"] = "prefer_remote"
    LOCAL_PROGRESS_TTL_SECONDS: Optional[int] = None
    PROGRESS_WRITE_MAX_RETRIES: int = 3
    PROGRESS_WRITE_RETRY_DELAY_SECONDS: int = 5

    # Background worker; eager mode runs tasks in-process (tests, single-process dev)
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # Quiz sessions
    QUIZ_SESSION_TIMEOUT_MINUTES: int = 120

    # Collaborators
    STRIPE_SECRET_KEY: Optional[str] = None
    FIREBASE_SERVICE_ACCOUNT_KEY: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


# Create a single, globally accessible instance of the settings.
settings = Settings()
