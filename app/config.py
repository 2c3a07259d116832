from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration, read from the environment or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    DATABASE_URL: str = Field(default="sqlite:///./data/room_reservations.db")

    # JWT
    SECRET_KEY: str = Field(default="change-me-room-reservations-secret")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # Document attachments
    UPLOAD_DIR: str = Field(default="./uploads")
    MAX_DOCUMENT_SIZE: int = Field(default=5 * 1024 * 1024)
    ALLOWED_DOCUMENT_EXTENSIONS: List[str] = Field(
        default=[".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png"]
    )

    # Room defaults
    DEFAULT_TIMEZONE: str = Field(default="Asia/Jakarta")
    DEFAULT_OPENING_TIME: str = Field(default="08:00")
    DEFAULT_CLOSING_TIME: str = Field(default="17:00")

    # Email notifications
    SMTP_ENABLED: bool = Field(default=False)
    SMTP_SERVER: str = Field(default="localhost")
    SMTP_PORT: int = Field(default=465)
    SMTP_USERNAME: str = Field(default="")
    SMTP_PASSWORD: str = Field(default="")
    MAIL_FROM: str = Field(default="noreply@room-reservations.local")

    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()
