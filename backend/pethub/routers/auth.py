"""Registration and login endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlmodel import Session

from .. import schemas, services
from ..config import settings
from ..database import get_session
from ..errors import AuthenticationError, RateLimitedError
from ..schemas import dump
from ..utils.rate_limit import LoginThrottle
from .common import parse_form, require

router = APIRouter(prefix="/api/auth", tags=["auth"])

login_throttle = LoginThrottle(settings.LOGIN_MAX_FAILURES, settings.LOGIN_WINDOW_SECONDS)


def _registered(user) -> dict:
    return {'success': True, 'message': 'User registered successfully', 'data': dump(schemas.UserOut, user)}


@router.post("/register", status_code=201)
def register(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    birthdate: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    profile_image: Optional[UploadFile] = File(None, alias="profileImage"),
    db: Session = Depends(get_session),
):
    """Create an account from a multipart form with an optional avatar."""
    require('All fields are required', full_name, email, birthdate, gender, password)
    data = parse_form(
        schemas.RegisterIn,
        full_name=full_name, email=email, birthdate=birthdate, gender=gender, password=password,
    )
    user = services.AuthService(db).register(data, profile_image)
    return _registered(user)


@router.post("/register-simple", status_code=201)
def register_simple(payload: schemas.RegisterIn, db: Session = Depends(get_session)):
    user = services.AuthService(db).register(payload)
    return _registered(user)


@router.post("/login")
def login(payload: schemas.LoginIn, request: Request, db: Session = Depends(get_session)):
    """Exchange credentials for a JWT.

    Failed attempts are counted per client address and email; once the
    limit is hit further attempts get 429 until the window passes.
    """
    client = request.client.host if request.client else "unknown"
    key = f"{client}:{payload.email}"
    retry_after = login_throttle.retry_after(key)
    if retry_after:
        raise RateLimitedError(f"Too many failed login attempts; retry after {retry_after}s", retry_after)
    svc = services.AuthService(db)
    user = svc.authenticate(payload.email, payload.password)
    if not user:
        login_throttle.record_failure(key)
        raise AuthenticationError('Invalid email or password')
    login_throttle.reset(key)
    return {'token': svc.create_token(user), 'isAdmin': user.is_admin, 'user': dump(schemas.UserOut, user)}
