"""Configuration settings for the fulfillment service."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Fulfillment Service")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api/campusmart/v1/fulfillment")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./fulfillment.db")
    SQLITE_BUSY_TIMEOUT: float = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))
    SECRET_KEY: str = os.getenv("SECRET_KEY", "changeme")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    MAX_SLOTS_PER_SCHEDULE: int = int(os.getenv("MAX_SLOTS_PER_SCHEDULE", "100"))
    NOTIFICATION_SERVICE_URL: str = os.getenv("NOTIFICATION_SERVICE_URL", "")
    NOTIFICATION_SERVICE_TIMEOUT: float = float(
        os.getenv("NOTIFICATION_SERVICE_TIMEOUT", "10")
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

__all__ = ["settings", "Settings", "get_settings"]
