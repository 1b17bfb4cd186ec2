"""
config.py

Centralized configuration management using pydantic-settings.
All modules must import settings from this file.
Direct os.getenv() calls are prohibited elsewhere.
"""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings loaded from .env file."""

    # Database
    mysql_host: str = "127.0.0.1"
    mysql_port: int = 3306
    mysql_user: str = "chronicare"
    mysql_password: str = ""
    mysql_db: str = "chronicare"
    database_url: str | None = None  # overrides the mysql_* parts when set

    # Security (tokens are issued by the auth service, only verified here)
    jwt_secret: str = "supersecret"
    jwt_algorithm: str = "HS256"

    # Real-time alert channels
    broadcast_mode: Literal["targeted", "broadcast"] = "targeted"
    channel_queue_size: int = 100

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.mysql_user}:{self.mysql_password}"
            f"@{self.mysql_host}:{self.mysql_port}/{self.mysql_db}"
        )


settings = Settings()
