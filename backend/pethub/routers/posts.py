"""Feed endpoints: posts, comments, replies and likes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user, get_optional_user
from ..database import get_session

router = APIRouter(prefix="/api", tags=["posts"])


@router.post("/post", status_code=201)
def create_post(
    content: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return {'success': True, 'data': services.PostService(db).create(user, content, image)}


@router.get("/post")
def list_posts(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return services.PostService(db).feed(user)


@router.delete("/post/{post_id}", status_code=204)
def delete_post(post_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    services.PostService(db).delete(post_id, user)
    return Response(status_code=204)


@router.get("/posts")
def paginated_posts(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    user: Optional[models.User] = Depends(get_optional_user),
    db: Session = Depends(get_session),
):
    """Paginated feed; works with or without a token."""
    return {'success': True, **services.PostService(db).page(user, page, limit)}


@router.get("/posts/{post_id}/comments")
def list_comments(post_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return services.PostService(db).comments(post_id)


@router.post("/posts/{post_id}/comments", status_code=201)
def add_comment(post_id: int, payload: schemas.ContentIn, user: models.User = Depends(get_current_user),
                db: Session = Depends(get_session)):
    comment = services.PostService(db).add_comment(post_id, user, payload.content)
    return {'success': True, 'message': 'Comment added successfully', 'data': comment}


@router.get("/posts/{post_id}/comments/{comment_id}/replies")
def list_replies(post_id: int, comment_id: int, user: models.User = Depends(get_current_user),
                 db: Session = Depends(get_session)):
    return services.PostService(db).replies(post_id, comment_id)


@router.post("/posts/{post_id}/comments/{comment_id}/replies", status_code=201)
def add_reply(post_id: int, comment_id: int, payload: schemas.ContentIn,
              user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    reply = services.PostService(db).add_reply(post_id, comment_id, user, payload.content)
    return {'success': True, 'message': 'Reply added successfully', 'data': reply}


@router.post("/posts/{post_id}/like")
def toggle_like(post_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    if services.PostService(db).toggle_like(post_id, user):
        return JSONResponse(status_code=201, content={
            'success': True, 'message': 'Post liked successfully', 'liked': True,
        })
    return {'success': True, 'message': 'Post unliked successfully', 'liked': False}


@router.post("/posts/{post_id}/unlike")
def unlike(post_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    remaining = services.PostService(db).unlike(post_id, user)
    return {'success': True, 'message': 'Post unliked successfully', 'liked': False, 'likesCount': remaining}
