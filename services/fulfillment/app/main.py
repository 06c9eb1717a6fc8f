"""Entry point for the Fulfillment FastAPI application."""

from fastapi import FastAPI

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.database import Base, engine, verify_database_connection
from app.core.error_handlers import register_exception_handlers

verify_database_connection()
# Ensure database tables exist when the application starts (for development purposes).
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.PROJECT_NAME)

register_exception_handlers(app)

app.include_router(
    v1_router,
    prefix=settings.API_PREFIX,
)


__all__ = ["app"]
