"""Bearer token handling for the fulfillment service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings

bearer_scheme = HTTPBearer(auto_error=False)

# Tokens minted by older versions of the auth service carry the user id under different keys.
_USER_ID_CLAIMS = ("id_user", "sub", "id", "userId", "adminId", "buyerId")
_EMAIL_CLAIMS = ("email", "userEmail", "preferred_username")

ROLE_ADMIN = "admin"
ROLE_BUYER = "buyer"
ROLE_SELLER = "seller"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as seen by the fulfillment services."""

    user_id: int
    role: str
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_buyer(self) -> bool:
        return self.role == ROLE_BUYER

    @property
    def is_seller(self) -> bool:
        return self.role == ROLE_SELLER


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    """Validate the bearer token issued by the Auth service.

    Returns the decoded JWT payload to downstream dependencies. Raises an HTTP 401
    error when the token is missing or invalid.
    """

    if credentials is None or not credentials.scheme or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Not authenticated")

    try:
        return jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError as exc:
        raise _unauthorized("Could not validate credentials") from exc


def principal_from_claims(claims: Dict[str, Any]) -> Principal:
    user_id: Optional[int] = None
    for key in _USER_ID_CLAIMS:
        value = claims.get(key)
        if value is None:
            continue
        try:
            user_id = int(str(value).strip())
        except (TypeError, ValueError):
            continue
        break

    if user_id is None:
        raise _unauthorized("Authenticated user identifier is missing or invalid")

    role = str(claims.get("role") or "").strip().lower()
    email = next(
        (str(claims[key]).strip() for key in _EMAIL_CLAIMS if claims.get(key)),
        None,
    )
    return Principal(user_id=user_id, role=role, email=email)


__all__ = [
    "Principal",
    "ROLE_ADMIN",
    "ROLE_BUYER",
    "ROLE_SELLER",
    "get_current_user",
    "principal_from_claims",
]
