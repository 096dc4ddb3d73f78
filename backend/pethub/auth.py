"""Authentication helpers and FastAPI security dependencies.

This module provides utilities to decode JWT tokens and FastAPI
dependencies that validate the bearer token and return the
corresponding `User` model instance from the request's session.

Token verification raises HTTPExceptions on failure so the helpers can
be used directly inside route dependencies.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlmodel import Session

from .config import settings
from .database import get_session
from . import models, repositories

# auto_error=False so a missing header yields our 401 rather than a 403
bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail='invalid token')


def _user_from_token(token: str, session: Session) -> models.User:
    payload = decode_token(token)
    user_id = payload.get('user_id')
    if not isinstance(user_id, int):
        raise HTTPException(status_code=401, detail='invalid token payload')
    user = repositories.UserRepository(session).get(user_id)
    if not user:
        raise HTTPException(status_code=401, detail='user not found')
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    session: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    The bearer token is decoded and the `User` row looked up in the same
    session the route uses. Any authentication issue raises 401.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail='Authentication required')
    return _user_from_token(credentials.credentials, session)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    session: Session = Depends(get_session),
) -> Optional[models.User]:
    """Like `get_current_user` but returns `None` for anonymous callers.

    A malformed or expired token is treated the same as no token.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _user_from_token(credentials.credentials, session)
    except HTTPException:
        return None


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail='Admin access required')
    return user
