from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    APP_NAME: str = "Matrimony Connect API"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000"
    FRONTEND_URL: str = "http://localhost:3000"

    # Interest lifecycle
    INTEREST_EXPIRY_DAYS: int = 30
    INTEREST_MESSAGE_MAX_LENGTH: int = 500

    # Sliding-window limit on sending interests, per sender
    INTEREST_SEND_LIMIT: int = 20
    INTEREST_SEND_WINDOW_SECONDS: int = 3600
    # Empty uses the in-process limiter; set to share limits across instances
    RATE_LIMIT_REDIS_URL: str = ""

    # Profile completeness threshold (0-100)
    PROFILE_COMPLETE_SCORE: int = 70

    # Email notifications
    SMTP_ENABLED: bool = False
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = ""
    SMTP_FROM_NAME: str = "Matrimony Connect"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
