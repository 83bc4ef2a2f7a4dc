from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import AccessToken
from .token_utils import verify_token

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AccessToken:
    """Resolve the bearer credential to a live access token."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authorized, no token")
    token = verify_token(db, credentials.credentials)
    if token is None:
        raise _unauthorized("Not authorized, token failed")
    return token


def get_current_user_id(token: AccessToken = Depends(get_current_token)) -> int:
    return token.user_id
