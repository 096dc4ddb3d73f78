"""Current-user profile endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import dump
from .common import parse_form

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/profile")
def get_profile(user: models.User = Depends(get_current_user)):
    return dump(schemas.UserOut, user)


@router.put("/profile")
async def update_profile(
    request: Request,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    """Update the caller's profile from a multipart form.

    `profileImage` may be a new file or the `/uploads/...` path of an
    image uploaded earlier, so the form is read directly.
    """
    form = await request.form()
    data = parse_form(
        schemas.ProfileUpdateIn,
        full_name=form.get("fullName"),
        birthdate=form.get("birthdate"),
        gender=form.get("gender"),
    )
    image = form.get("profileImage")
    upload = image if isinstance(image, StarletteUploadFile) else None
    path = image if isinstance(image, str) else None
    updated = await run_in_threadpool(services.UserService(db).update_profile, user, data, upload, path)
    return dump(schemas.UserOut, updated)


@router.get("/shop-status")
def shop_status(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return {'success': True, 'data': services.UserService(db).shop_status(user)}
