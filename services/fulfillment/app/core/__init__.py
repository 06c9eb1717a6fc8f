"""Core utilities for the fulfillment service."""

from .config import settings
from .database import Base, SessionLocal, engine, verify_database_connection
from .security import Principal, get_current_user

__all__ = [
    "settings",
    "Base",
    "SessionLocal",
    "engine",
    "verify_database_connection",
    "Principal",
    "get_current_user",
]
