from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./learning_journal.db")
    # Sync URL used by Alembic; derived from DATABASE_URL when unset
    SYNC_DATABASE_URL: str | None = None
    DATABASE_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Allow CORS for frontend development
    CORS_ALLOWED_ORIGINS: list[str] = Field(default=["http://localhost:3000"])

    # Rate limiting (slowapi syntax)
    RATE_LIMIT_ENABLED: bool = True
    GRAPHQL_RATE_LIMIT: str = "100/minute"
    HEALTH_RATE_LIMIT: str = "10/minute"

    # Learning log field bounds (enforced at the mutation boundary)
    TITLE_MAX_LENGTH: int = 120
    REFLECTION_MAX_LENGTH: int = 4000
    TAGS_MAX_COUNT: int = 12
    TAG_MAX_LENGTH: int = 50
    TIME_SPENT_MAX_MINUTES: int = 60 * 24
    SOURCE_URL_MAX_LENGTH: int = 2048

    # LLM provider (summary + habit coach)
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    COACH_MODEL: str = "gpt-4o-mini"
    SUMMARY_TEMPERATURE: float = 0.7
    HABIT_TEMPERATURE: float = 0.65
    QUOTA_COOLDOWN_SECONDS: int = 60 * 60  # 1 hour
    LLM_RETRY_ATTEMPTS: int = 3
    COACH_LOOKBACK_DAYS: int = 30
    COACH_MAX_LOGS: int = 80

    # OpenTelemetry (optional)
    OPENTELEMETRY_ENABLED: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None


settings = Settings()
