"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "authcore"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Database
    DATABASE_URL: str = "sqlite:///./data/authcore.db"

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    SESSION_PURGE_INTERVAL_MINUTES: int = 60

    # Tokens
    JWT_SECRET: str = "super-secret-jwt-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRY_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRY_DAYS: int = 7
    REFRESH_TOKEN_REMEMBER_DAYS: int = 30

    # Single-use credential tokens
    PASSWORD_RESET_EXPIRY_MINUTES: int = 60
    EMAIL_VERIFICATION_EXPIRY_HOURS: int = 24

    # Two-factor
    TOTP_ISSUER: str = "authcore"

    # Admin seed
    ADMIN_EMAIL: str = "admin@authcore.dev"
    ADMIN_PASSWORD: str = "changeme123"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
