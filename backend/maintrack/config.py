"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Maintenance_Tracker"
    ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Database
    DATABASE_URL: str = "sqlite:///./maintrack.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"

    # JWT (tokens are issued by the auth service; we only verify them)
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_LEEWAY_SECONDS: int = 30  # clock skew tolerance for exp validation

    # Email (SMTP). Without EMAIL_USER/EMAIL_PASSWORD the emailer only logs.
    EMAIL_HOST: str = "smtp.gmail.com"
    EMAIL_PORT: int = 587
    EMAIL_USER: str | None = None
    EMAIL_PASSWORD: str | None = None
    EMAIL_FROM_NAME: str = "Maintenance Tracker"
    EMAIL_USE_TLS: bool = True
    EMAIL_TIMEOUT_SECONDS: int = 10

    # Scheduler windows
    REMINDER_LOOKAHEAD_DAYS: int = 3
    OCCURRENCE_DUE_WINDOW_DAYS: int = 7
    NOTIFICATION_RETENTION_DAYS: int = 30
    NOTIFICATION_RECIPIENT_ROLES: str = "admin,manager"

    # Beat schedule (UTC hours)
    REMINDERS_HOUR: int = 8
    LOW_STOCK_HOUR: int = 9
    RECURRING_GENERATION_HOUR: int = 0
    NOTIFICATION_CLEANUP_HOUR: int = 0
    NOTIFICATION_CLEANUP_DAY_OF_WEEK: str = "sunday"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def recipient_roles(self) -> list[str]:
        """Roles that receive scheduler reminders and stock alerts."""
        return [role.strip() for role in self.NOTIFICATION_RECIPIENT_ROLES.split(",") if role.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.EMAIL_USER and self.EMAIL_PASSWORD)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
