"""Shared dependencies for the fulfillment service."""

from typing import Dict, Generator

from fastapi import Depends

from app.core.database import SessionLocal
from app.core.errors import AuthorizationError
from app.core.security import Principal, get_current_user, principal_from_claims


def get_db() -> Generator:
    """Provide a transactional scope around a series of operations."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_principal(claims: Dict[str, object] = Depends(get_current_user)) -> Principal:
    return principal_from_claims(claims)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise AuthorizationError("Admin access required")
    return principal


def require_buyer(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_buyer:
        raise AuthorizationError("Buyer access required")
    return principal


def require_seller(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_seller:
        raise AuthorizationError("Seller access required")
    return principal


__all__ = ["get_db", "get_principal", "require_admin", "require_buyer", "require_seller"]
