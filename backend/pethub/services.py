"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories,
uploads and auxiliary logic. Services perform validation, execute
domain logic and persist aggregates via repositories. Failures are
raised as `pethub.errors` exceptions; controllers never build error
responses themselves.

Multi-table deletes stage their statements through the repositories and
commit once inside `atomic`, so a failure part-way leaves nothing
deleted.
"""

import logging
import math
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import jwt
from fastapi import UploadFile
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from . import models, repositories, schemas
from .config import settings
from .errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from .schemas import dump
from .utils import uploads

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TASK_TYPES = ('Feeding', 'Pooping', 'Drinking', 'Minor')

logger = logging.getLogger("pethub.services")


@contextmanager
def atomic(session: Session):
    """Commit everything staged inside the block, or roll it all back."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def _text(value: Optional[str]) -> str:
    return (value or '').strip()


def _author(users: Dict[int, models.User], user_id: int) -> Optional[dict]:
    user = users.get(user_id)
    return dump(schemas.UserSummary, user) if user else None


def _owner(users: Dict[int, models.User], user_id: int) -> Optional[dict]:
    user = users.get(user_id)
    return dump(schemas.OwnerSummary, user) if user else None


class AuthService:
    """Authentication related operations (register + authenticate)."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def register(self, data: schemas.RegisterIn, profile_image: Optional[UploadFile] = None) -> models.User:
        """Create a new user with a hashed password.

        The optional profile image is validated before anything is
        written. Returns the persisted `User` instance.
        """
        if self.user_repo.get_by_email(data.email):
            raise ConflictError('User with this email already exists')
        image = uploads.read_image(profile_image) if uploads.has_file(profile_image) else None
        user = models.User(
            full_name=data.full_name,
            email=data.email,
            password_hash=PWD_CTX.hash(data.password),
            gender=data.gender,
            birthdate=data.birthdate,
        )
        if image:
            user.profile_picture = uploads.store_image(image, uploads.unique_stem('profile'))
        try:
            user = self.user_repo.save(user)
        except IntegrityError:
            self.session.rollback()
            raise ConflictError('User with this email already exists')
        logger.info("user_registered user_id=%s", user.id)
        return user

    def authenticate(self, email: str, password: str) -> Optional[models.User]:
        """Return the user when the credentials match, otherwise `None`."""
        user = self.user_repo.get_by_email(email)
        if not user:
            return None
        if not PWD_CTX.verify(password, user.password_hash):
            return None
        return user

    def create_token(self, user: models.User) -> str:
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
        payload = {
            "user_id": user.id,
            "email": user.email,
            "is_admin": user.is_admin,
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class UserService:
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.shop_repo = repositories.ShopRepository(session)
        self.app_repo = repositories.ShopApplicationRepository(session)

    def update_profile(
        self,
        user: models.User,
        data: schemas.ProfileUpdateIn,
        profile_image: Optional[UploadFile] = None,
        profile_path: Optional[str] = None,
    ) -> models.User:
        """Apply the non-empty fields of `data` to `user`.

        A new picture is either an uploaded file or an already uploaded
        `/uploads/...` path sent as plain text.
        """
        if _text(data.full_name):
            user.full_name = _text(data.full_name)
        if data.birthdate is not None:
            user.birthdate = data.birthdate
        if _text(data.gender):
            user.gender = _text(data.gender)
        if uploads.has_file(profile_image):
            user.profile_picture = uploads.save_image(profile_image, uploads.unique_stem('profile', user.id))
        elif uploads.is_upload_path(profile_path):
            user.profile_picture = profile_path
        return self.user_repo.save(user)

    def shop_status(self, user: models.User) -> dict:
        application = self.app_repo.latest_with_status(user.id, 'approved')
        summary = None
        if application:
            summary = {
                'id': application.id,
                'status': application.status,
                'shopName': application.shop_name,
                'createdAt': application.created_at.isoformat(),
            }
        return {
            'isShopOwner': user.is_shop_owner,
            'hasShop': self.shop_repo.get_by_user(user.id) is not None,
            'shopApplication': summary,
        }


class PetService:
    def __init__(self, session: Session):
        self.session = session
        self.pet_repo = repositories.PetRepository(session)
        self.med_repo = repositories.MedicalRecordRepository(session)
        self.task_repo = repositories.TaskRepository(session)
        self.vacc_repo = repositories.VaccinationRepository(session)

    def list_for(self, user: models.User) -> List[dict]:
        """Pets visible to `user` (all of them for admins), each with its
        most recent medical record only."""
        pets = self.pet_repo.list_all() if user.is_admin else self.pet_repo.list_for_user(user.id)
        records = self.med_repo.list_for_pets(p.id for p in pets)
        return [
            dump(
                schemas.PetOut,
                pet,
                medicalRecords=[dump(schemas.MedicalRecordOut, r) for r in records[pet.id][:1]],
            )
            for pet in pets
        ]

    def get_owned(self, pet_id: int, user: models.User) -> models.Pet:
        pet = self.pet_repo.get_owned(pet_id, user.id)
        if not pet:
            raise NotFoundError('Pet not found')
        return pet

    def create(self, user: models.User, data: schemas.PetIn, picture: Optional[UploadFile] = None) -> models.Pet:
        image = uploads.read_image(picture) if uploads.has_file(picture) else None
        pet = models.Pet(
            user_id=user.id,
            name=data.name,
            birthdate=data.birthdate,
            type=data.type,
            breed=_text(data.breed),
            health_condition=data.health_condition,
        )
        pet = self.pet_repo.save(pet)
        if image:
            # picture name depends on the new pet id
            pet.pet_picture = uploads.store_image(image, f"{user.id}_{pet.id}")
            pet = self.pet_repo.save(pet)
        logger.info("pet_created pet_id=%s user_id=%s", pet.id, user.id)
        return pet

    def update(self, pet_id: int, user: models.User, data: schemas.PetIn,
               picture: Optional[UploadFile] = None) -> models.Pet:
        pet = self.pet_repo.get_owned(pet_id, user.id)
        if not pet:
            raise NotFoundError('Pet not found or does not belong to user')
        image = uploads.read_image(picture) if uploads.has_file(picture) else None
        pet.name = data.name
        pet.type = data.type
        pet.birthdate = data.birthdate
        if data.breed is not None:
            pet.breed = data.breed.strip()
        if data.health_condition is not None:
            pet.health_condition = data.health_condition
        if image:
            pet.pet_picture = uploads.store_image(image, uploads.unique_stem('pet', user.id, pet.id))
        return self.pet_repo.save(pet)

    def delete(self, pet_id: int, user: models.User) -> None:
        """Delete an owned pet together with its tasks and health records."""
        pet = self.get_owned(pet_id, user)
        with atomic(self.session):
            self.task_repo.delete_for_pet(pet.id)
            self.vacc_repo.delete_for_pet(pet.id)
            self.med_repo.delete_for_pet(pet.id)
            self.pet_repo.delete(pet.id)
        logger.info("pet_deleted pet_id=%s user_id=%s", pet_id, user.id)


class MedicalRecordService:
    def __init__(self, session: Session):
        self.session = session
        self.pet_repo = repositories.PetRepository(session)
        self.med_repo = repositories.MedicalRecordRepository(session)

    def _owned_pet(self, pet_id: int, user: models.User) -> models.Pet:
        pet = self.pet_repo.get_owned(pet_id, user.id)
        if not pet:
            raise NotFoundError('Pet not found')
        return pet

    def _record(self, pet_id: int, record_id: int, user: models.User) -> models.MedicalRecord:
        record = self.med_repo.get_for(record_id, pet_id, user.id)
        if not record:
            raise NotFoundError('Medical record not found')
        return record

    def list(self, pet_id: int, user: models.User) -> List[models.MedicalRecord]:
        pet = self._owned_pet(pet_id, user)
        return self.med_repo.list_for_pets([pet.id])[pet.id]

    def create(self, pet_id: int, user: models.User, data: schemas.MedicalRecordIn) -> models.MedicalRecord:
        pet = self._owned_pet(pet_id, user)
        record = models.MedicalRecord(user_id=user.id, pet_id=pet.id, **data.model_dump())
        return self.med_repo.save(record)

    def get(self, pet_id: int, record_id: int, user: models.User) -> models.MedicalRecord:
        return self._record(pet_id, record_id, user)

    def update(self, pet_id: int, record_id: int, user: models.User,
               data: schemas.MedicalRecordIn) -> models.MedicalRecord:
        record = self._record(pet_id, record_id, user)
        for name, value in data.model_dump().items():
            setattr(record, name, value)
        return self.med_repo.save(record)

    def delete(self, pet_id: int, record_id: int, user: models.User) -> None:
        record = self._record(pet_id, record_id, user)
        with atomic(self.session):
            self.med_repo.delete(record.id)


class TaskService:
    def __init__(self, session: Session):
        self.session = session
        self.task_repo = repositories.TaskRepository(session)
        self.pet_repo = repositories.PetRepository(session)

    def _owned_pet(self, pet_id: int, user: models.User) -> models.Pet:
        pet = self.pet_repo.get_owned(pet_id, user.id)
        if not pet:
            raise NotFoundError('Pet not found')
        return pet

    def get_owned(self, task_id: int, user: models.User) -> models.Task:
        task = self.task_repo.get_owned(task_id, user.id)
        if not task:
            raise NotFoundError('Task not found')
        return task

    def create(self, user: models.User, data: schemas.TaskCreateIn) -> models.Task:
        """Create a `Daily` or `Scheduled` task for one of the user's pets.

        Each missing input has its own message: pet id first, then name,
        then time.
        """
        if data.pet_id is None:
            raise InvalidInputError('Invalid petId')
        name = _text(data.name)
        if not name:
            raise InvalidInputError('Task name is required')
        if data.time is None:
            raise InvalidInputError('Task time is required')
        pet = self._owned_pet(data.pet_id, user)
        task = models.Task(
            user_id=user.id,
            pet_id=pet.id,
            type='Daily' if data.is_daily else 'Scheduled',
            name=name,
            description=_text(data.description),
            time=data.time,
            frequency=data.frequency or 'daily',
        )
        return self.task_repo.save(task)

    def list(self, user: models.User, pet_id: Optional[int] = None) -> List[dict]:
        tasks = self.task_repo.list_for_user(user.id, pet_id)
        pets = {p.id: p for p in self.pet_repo.list_for_user(user.id)}
        out = []
        for task in tasks:
            pet = pets.get(task.pet_id)
            out.append(dump(
                schemas.TaskOut,
                task,
                pet={'name': pet.name, 'type': pet.type} if pet else None,
            ))
        return out

    def update(self, task_id: int, user: models.User, data: schemas.TaskUpdateIn) -> models.Task:
        """Update a task.

        Feeding, Pooping and Drinking are crucial: at most one of each per
        pet, and their description is always `Crucial`. Minor tasks may
        repeat but need a description (falling back to the name).
        """
        if data.type not in TASK_TYPES:
            raise InvalidInputError(f"Task type must be one of: {', '.join(TASK_TYPES)}")
        if data.time is None:
            raise InvalidInputError('Task time is required')
        task = self.get_owned(task_id, user)
        pet_id = data.pet_id if data.pet_id is not None else task.pet_id
        if pet_id != task.pet_id:
            self._owned_pet(pet_id, user)
        if data.type != 'Minor':
            existing = self.task_repo.find_by_type(user.id, pet_id, data.type)
            if existing and existing.id != task.id:
                raise InvalidInputError(f'A {data.type} task already exists for this pet.')
            description = 'Crucial'
        else:
            description = _text(data.description) or _text(data.name)
            if not description:
                raise InvalidInputError('Task description or name is required for Minor tasks')
        task.pet_id = pet_id
        task.type = data.type
        task.description = description
        if _text(data.name):
            task.name = _text(data.name)
        task.time = data.time
        if data.frequency is not None:
            task.frequency = data.frequency
        return self.task_repo.save(task)

    def delete(self, task_id: int, user: models.User) -> None:
        task = self.get_owned(task_id, user)
        with atomic(self.session):
            self.task_repo.delete(task.id)


class VaccinationService:
    def __init__(self, session: Session):
        self.session = session
        self.vacc_repo = repositories.VaccinationRepository(session)
        self.pet_repo = repositories.PetRepository(session)

    def _check_pet(self, pet_id: int, user: models.User) -> None:
        if not self.pet_repo.get_owned(pet_id, user.id):
            raise NotFoundError('Pet not found')

    def _record(self, record_id: int, user: models.User) -> models.VaccinationRecord:
        record = self.vacc_repo.get_owned(record_id, user.id)
        if not record:
            raise NotFoundError('Vaccination record not found')
        return record

    def create(self, user: models.User, data: schemas.VaccinationIn) -> models.VaccinationRecord:
        self._check_pet(data.pet_id, user)
        record = models.VaccinationRecord(user_id=user.id, **data.model_dump())
        return self.vacc_repo.save(record)

    def list(self, user: models.User) -> List[models.VaccinationRecord]:
        return self.vacc_repo.list_for_user(user.id)

    def update(self, record_id: int, user: models.User, data: schemas.VaccinationIn) -> models.VaccinationRecord:
        record = self._record(record_id, user)
        if data.pet_id != record.pet_id:
            self._check_pet(data.pet_id, user)
        for name, value in data.model_dump().items():
            setattr(record, name, value)
        return self.vacc_repo.save(record)

    def delete(self, record_id: int, user: models.User) -> None:
        record = self._record(record_id, user)
        with atomic(self.session):
            self.vacc_repo.delete(record.id)


class PostService:
    """Posts, their comment threads and likes."""
    def __init__(self, session: Session):
        self.session = session
        self.post_repo = repositories.PostRepository(session)
        self.comment_repo = repositories.CommentRepository(session)
        self.reply_repo = repositories.ReplyRepository(session)
        self.like_repo = repositories.PostLikeRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def _get(self, post_id: int) -> models.Post:
        post = self.post_repo.get(post_id)
        if not post:
            raise NotFoundError('Post not found')
        return post

    def create(self, user: models.User, content: Optional[str], image: Optional[UploadFile] = None) -> dict:
        text = _text(content)
        if not text:
            raise InvalidInputError('Post content is required')
        path = None
        if uploads.has_file(image):
            path = uploads.save_image(image, uploads.unique_stem('post', user.id))
        post = self.post_repo.save(models.Post(user_id=user.id, content=text, image=path))
        return dump(schemas.PostOut, post, user=dump(schemas.UserSummary, user))

    def _threads(self, posts: List[models.Post]):
        """Load comments, replies, likes and every author for `posts`."""
        post_ids = [p.id for p in posts]
        comments = self.comment_repo.list_for_posts(post_ids)
        comment_ids = [c.id for cs in comments.values() for c in cs]
        replies = self.reply_repo.list_for_comments(comment_ids)
        likes = self.like_repo.list_for_posts(post_ids)
        author_ids = {p.user_id for p in posts}
        author_ids.update(c.user_id for cs in comments.values() for c in cs)
        author_ids.update(r.user_id for rs in replies.values() for r in rs)
        users = self.user_repo.list_by_ids(author_ids)
        return comments, replies, likes, users

    def _comment(self, comment, replies, users) -> dict:
        return dump(
            schemas.CommentOut,
            comment,
            user=_author(users, comment.user_id),
            replies=[dump(schemas.ReplyOut, r, user=_author(users, r.user_id)) for r in replies[comment.id]],
        )

    def feed(self, viewer: models.User) -> List[dict]:
        """All posts, newest first, with full threads and like state."""
        posts = self.post_repo.list_all()
        comments, replies, likes, users = self._threads(posts)
        out = []
        for post in posts:
            post_likes = likes[post.id]
            out.append(dump(
                schemas.PostOut,
                post,
                user=_author(users, post.user_id),
                comments=[self._comment(c, replies, users) for c in comments[post.id]],
                postLikes=[dump(schemas.PostLikeOut, like) for like in post_likes],
                isLiked=any(like.user_id == viewer.id for like in post_likes),
                likesCount=len(post_likes),
                commentsCount=len(comments[post.id]),
            ))
        return out

    def page(self, viewer: Optional[models.User], page: Optional[int], limit: Optional[int]) -> dict:
        """One page of the flattened feed plus pagination metadata.

        Out-of-range `page`/`limit` fall back to 1/10; `limit` is capped
        at 100. Anonymous viewers never see `isLiked=True`.
        """
        page = page if page and page >= 1 else 1
        limit = min(limit, 100) if limit and limit >= 1 else 10
        total = self.post_repo.count()
        posts = self.post_repo.page((page - 1) * limit, limit)
        comments, replies, likes, users = self._threads(posts)
        data = []
        for post in posts:
            author = users.get(post.user_id)
            post_likes = likes[post.id]
            data.append({
                'id': post.id,
                'userId': post.user_id,
                'userName': author.full_name if author else None,
                'userProfilePicture': author.profile_picture if author else None,
                'content': post.content,
                'image': post.image,
                'createdAt': post.created_at.isoformat(),
                'likes': len(post_likes),
                'likesCount': len(post_likes),
                'commentsCount': len(comments[post.id]),
                'isLiked': viewer is not None and any(like.user_id == viewer.id for like in post_likes),
                'isShopOwner': bool(author and author.is_shop_owner),
                'user': _author(users, post.user_id),
                'comments': [self._flat_comment(c, replies, users) for c in comments[post.id]],
            })
        total_pages = math.ceil(total / limit)
        return {
            'data': data,
            'pagination': {
                'currentPage': page,
                'totalPages': total_pages,
                'totalPosts': total,
                'hasNextPage': page < total_pages,
                'hasPreviousPage': page > 1,
            },
        }

    def _flat_comment(self, comment, replies, users) -> dict:
        def flat(item) -> dict:
            author = users.get(item.user_id)
            return {
                'id': item.id,
                'userId': item.user_id,
                'userName': author.full_name if author else None,
                'userProfilePicture': author.profile_picture if author else None,
                'content': item.content,
                'createdAt': item.created_at.isoformat(),
            }
        out = flat(comment)
        out['replies'] = [flat(r) for r in replies[comment.id]]
        return out

    def delete(self, post_id: int, user: models.User) -> None:
        """Delete an own post with its replies, comments and likes."""
        post = self._get(post_id)
        if post.user_id != user.id:
            raise PermissionDeniedError('Forbidden: You can only delete your own posts')
        with atomic(self.session):
            comment_ids = self.comment_repo.ids_for_posts([post.id])
            self.reply_repo.delete_for_user_or_comments(None, comment_ids)
            self.comment_repo.delete_many(comment_ids)
            self.like_repo.delete_for_user_or_posts(None, [post.id])
            self.post_repo.delete_many([post.id])
        logger.info("post_deleted post_id=%s user_id=%s", post_id, user.id)

    # comments and replies

    def comments(self, post_id: int) -> List[dict]:
        post = self._get(post_id)
        comments, replies, _likes, users = self._threads([post])
        return [self._comment(c, replies, users) for c in comments[post.id]]

    def add_comment(self, post_id: int, user: models.User, content: Optional[str]) -> dict:
        text = _text(content)
        if not text:
            raise InvalidInputError('Comment content is required')
        post = self._get(post_id)
        comment = self.comment_repo.save(models.Comment(user_id=user.id, post_id=post.id, content=text))
        return dump(schemas.CommentOut, comment, user=dump(schemas.UserSummary, user), replies=[])

    def _comment_on(self, post_id: int, comment_id: int) -> models.Comment:
        comment = self.comment_repo.get(comment_id)
        if not comment or comment.post_id != post_id:
            raise NotFoundError('Comment not found')
        return comment

    def replies(self, post_id: int, comment_id: int) -> List[dict]:
        comment = self._comment_on(post_id, comment_id)
        replies = self.reply_repo.list_for_comments([comment.id])[comment.id]
        users = self.user_repo.list_by_ids(r.user_id for r in replies)
        return [dump(schemas.ReplyOut, r, user=_author(users, r.user_id)) for r in replies]

    def add_reply(self, post_id: int, comment_id: int, user: models.User, content: Optional[str]) -> dict:
        text = _text(content)
        if not text:
            raise InvalidInputError('Reply content is required')
        comment = self._comment_on(post_id, comment_id)
        reply = self.reply_repo.save(models.Reply(user_id=user.id, comment_id=comment.id, content=text))
        return dump(schemas.ReplyOut, reply, user=dump(schemas.UserSummary, user))

    # likes

    def toggle_like(self, post_id: int, user: models.User) -> bool:
        """Like the post, or remove the like if present. Returns the new state.

        A concurrent insert of the same like trips the unique constraint;
        that outcome is reported as liked.
        """
        post = self._get(post_id)
        existing = self.like_repo.get_for(user.id, post.id)
        if existing:
            self.like_repo.remove(existing)
            return False
        try:
            self.like_repo.save(models.PostLike(user_id=user.id, post_id=post.id))
        except IntegrityError:
            self.session.rollback()
            logger.info("duplicate_like user_id=%s post_id=%s", user.id, post.id)
        return True

    def unlike(self, post_id: int, user: models.User) -> int:
        """Remove the caller's like and return the remaining like count."""
        post = self._get(post_id)
        existing = self.like_repo.get_for(user.id, post.id)
        if not existing:
            raise InvalidInputError('Post was not liked')
        self.like_repo.remove(existing)
        return self.like_repo.count_for_post(post.id)


class ShopService:
    def __init__(self, session: Session):
        self.session = session
        self.shop_repo = repositories.ShopRepository(session)
        self.app_repo = repositories.ShopApplicationRepository(session)
        self.promo_repo = repositories.PromotionalPostRepository(session)
        self.review_repo = repositories.ShopReviewRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def _own_shop(self, user: models.User) -> models.Shop:
        shop = self.shop_repo.get_by_user(user.id)
        if not shop:
            raise NotFoundError('Shop not found')
        return shop

    def map_items(self) -> List[dict]:
        return [dump(schemas.ShopMapItem, s) for s in self.shop_repo.list_all()]

    def create(self, data: schemas.ShopCreateIn) -> models.Shop:
        """Admin shortcut: create an approved shop for an existing user."""
        owner = self.user_repo.get(data.user_id)
        if not owner:
            raise NotFoundError('User not found')
        if self.shop_repo.get_by_user(owner.id):
            raise ConflictError('User already has a shop')
        shop = models.Shop(**data.model_dump(), approved=True)
        owner.is_shop_owner = True
        owner.updated_at = models.utcnow()
        with atomic(self.session):
            self.session.add(shop)
            self.session.add(owner)
        self.session.refresh(shop)
        logger.info("shop_created shop_id=%s user_id=%s", shop.id, owner.id)
        return shop

    def apply(self, user: models.User, data: schemas.ShopApplicationIn,
              shop_image: Optional[UploadFile] = None) -> models.ShopApplication:
        """File a shop application; only one may be pending per user."""
        if self.shop_repo.get_by_user(user.id):
            raise ConflictError('You already own a shop')
        if self.app_repo.find_pending(user.id):
            raise InvalidInputError('You already have a pending shop application')
        path = None
        if uploads.has_file(shop_image):
            path = uploads.save_image(
                shop_image, uploads.unique_stem('shop', user.id), settings.MAX_SHOP_IMAGE_BYTES
            )
        application = models.ShopApplication(user_id=user.id, shop_image=path, **data.model_dump())
        application = self.app_repo.save(application)
        logger.info("shop_application_submitted application_id=%s user_id=%s", application.id, user.id)
        return application

    def profile(self, user: models.User) -> models.Shop:
        return self._own_shop(user)

    def update_profile(
        self,
        user: models.User,
        shop_name: Optional[str],
        is_available: Optional[str] = None,
        bio: Optional[str] = None,
        contact_number: Optional[str] = None,
        shop_location: Optional[str] = None,
        shop_image: Optional[UploadFile] = None,
    ) -> models.Shop:
        if not _text(shop_name):
            raise InvalidInputError('Shop name is required')
        shop = self._own_shop(user)
        shop.shop_name = _text(shop_name)
        if is_available is not None:
            shop.is_available = is_available.strip().lower() == 'true'
        if _text(bio):
            shop.bio = _text(bio)
        if _text(contact_number):
            shop.contact_number = _text(contact_number)
        if _text(shop_location):
            shop.shop_location = _text(shop_location)
        if uploads.has_file(shop_image):
            shop.shop_image = uploads.save_image(
                shop_image, uploads.unique_stem('shop', user.id), settings.MAX_SHOP_IMAGE_BYTES
            )
        return self.shop_repo.save(shop)

    def create_promotion(self, user: models.User, caption: Optional[str],
                         image: Optional[UploadFile] = None) -> models.PromotionalPost:
        text = _text(caption)
        if not text:
            raise InvalidInputError('Caption is required')
        shop = self.shop_repo.get_by_user(user.id)
        if not shop:
            raise PermissionDeniedError('Only shop owners can create promotional posts')
        path = None
        if uploads.has_file(image):
            path = uploads.save_image(image, uploads.unique_stem('promo', shop.id), settings.MAX_SHOP_IMAGE_BYTES)
        return self.promo_repo.save(models.PromotionalPost(shop_id=shop.id, caption=text, image=path))

    def promotions(self, user: models.User) -> List[models.PromotionalPost]:
        return self.promo_repo.list_for_shop(self._own_shop(user).id)

    def pins(self, search: Optional[str] = None) -> List[dict]:
        shops = self.shop_repo.list_by_name(_text(search) or None)
        owners = self.user_repo.list_by_ids(s.user_id for s in shops)
        return [
            dump(schemas.ShopPinOut, s, ownerName=owners[s.user_id].full_name if s.user_id in owners else 'Unknown')
            for s in shops
        ]

    def public_profile(self, shop_id: int) -> dict:
        shop = self.shop_repo.get(shop_id)
        if not shop:
            raise NotFoundError('Shop not found')
        owner = self.user_repo.get(shop.user_id)
        return dump(
            schemas.ShopOut,
            shop,
            ownerName=owner.full_name if owner else 'Unknown',
            promotionalPosts=[dump(schemas.PromotionalPostOut, p) for p in self.promo_repo.list_for_shop(shop.id)],
        )

    # reviews

    def add_review(self, user: models.User, data: schemas.ReviewIn) -> models.ShopReview:
        """Record a review and refresh the shop's cached rating."""
        shop = self.shop_repo.get(data.shop_id)
        if not shop:
            raise NotFoundError('Shop not found')
        if shop.user_id == user.id:
            raise PermissionDeniedError('You cannot review your own shop')
        if self.review_repo.get_for(user.id, shop.id):
            raise ConflictError('You have already reviewed this shop')
        review = models.ShopReview(user_id=user.id, shop_id=shop.id, rating=data.rating, review=data.review)
        try:
            with atomic(self.session):
                self.session.add(review)
                self.session.flush()
                shop.rating, shop.total_reviews = self.review_repo.stats_for_shop(shop.id)
                shop.updated_at = models.utcnow()
                self.session.add(shop)
        except IntegrityError:
            raise ConflictError('You have already reviewed this shop')
        self.session.refresh(review)
        return review

    def reviews(self, shop_id: int) -> List[dict]:
        if not self.shop_repo.get(shop_id):
            raise NotFoundError('Shop not found')
        reviews = self.review_repo.list_for_shop(shop_id)
        users = self.user_repo.list_by_ids(r.user_id for r in reviews)
        return [
            dump(schemas.ShopReviewOut, r, userName=users[r.user_id].full_name if r.user_id in users else 'Unknown')
            for r in reviews
        ]


class AdminService:
    """Administrative listings, cascade deletes and application review."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.pet_repo = repositories.PetRepository(session)
        self.med_repo = repositories.MedicalRecordRepository(session)
        self.vacc_repo = repositories.VaccinationRepository(session)
        self.task_repo = repositories.TaskRepository(session)
        self.post_repo = repositories.PostRepository(session)
        self.comment_repo = repositories.CommentRepository(session)
        self.reply_repo = repositories.ReplyRepository(session)
        self.like_repo = repositories.PostLikeRepository(session)
        self.shop_repo = repositories.ShopRepository(session)
        self.app_repo = repositories.ShopApplicationRepository(session)
        self.promo_repo = repositories.PromotionalPostRepository(session)
        self.review_repo = repositories.ShopReviewRepository(session)

    # listings

    def users(self) -> List[dict]:
        pets = self.pet_repo.counts_by_user()
        posts = self.post_repo.counts_by_user()
        return [
            dump(schemas.UserOut, u, petsCount=pets.get(u.id, 0), postsCount=posts.get(u.id, 0))
            for u in self.user_repo.list_all()
        ]

    def pets(self) -> List[dict]:
        pets = self.pet_repo.list_all(newest_first=True)
        pet_ids = [p.id for p in pets]
        owners = self.user_repo.list_by_ids(p.user_id for p in pets)
        records = self.med_repo.list_for_pets(pet_ids)
        tasks = self.task_repo.list_for_pets(pet_ids)
        return [
            dump(
                schemas.PetOut,
                p,
                user=_owner(owners, p.user_id),
                medicalRecords=[dump(schemas.MedicalRecordOut, r) for r in records[p.id]],
                tasks=[dump(schemas.TaskOut, t) for t in tasks[p.id]],
            )
            for p in pets
        ]

    def shops(self) -> List[dict]:
        shops = self.shop_repo.list_all()
        owners = self.user_repo.list_by_ids(s.user_id for s in shops)
        return [dump(schemas.ShopOut, s, user=_owner(owners, s.user_id)) for s in shops]

    def applications(self) -> List[dict]:
        apps = self.app_repo.list_all()
        owners = self.user_repo.list_by_ids(a.user_id for a in apps)
        return [dump(schemas.ShopApplicationOut, a, user=_owner(owners, a.user_id)) for a in apps]

    def stats(self) -> dict:
        return {
            'totalUsers': self.user_repo.count(),
            'totalPets': self.pet_repo.count(),
            'totalPosts': self.post_repo.count(),
            'totalShops': self.shop_repo.count(),
            'pendingApplications': self.app_repo.count_pending(),
        }

    # cascade deletes

    def _stage_shop_delete(self, shop: models.Shop) -> None:
        self.promo_repo.delete_for_shop(shop.id)
        self.review_repo.delete_for_shop(shop.id)
        self.shop_repo.delete(shop.id)

    def _refresh_rating(self, shop_id: int) -> None:
        reviewed_shop = self.shop_repo.get(shop_id)
        if reviewed_shop:
            reviewed_shop.rating, reviewed_shop.total_reviews = self.review_repo.stats_for_shop(shop_id)
            reviewed_shop.updated_at = models.utcnow()
            self.session.add(reviewed_shop)

    def delete_user(self, user_id: int) -> None:
        """Delete a non-admin user and everything that references them.

        Children go before parents so foreign keys hold at every step;
        the whole sequence is one transaction.
        """
        user = self.user_repo.get(user_id)
        if not user:
            raise NotFoundError('User not found')
        if user.is_admin:
            raise PermissionDeniedError('Cannot delete admin users')
        pet_ids = self.pet_repo.ids_for_user(user.id)
        post_ids = self.post_repo.ids_for_user(user.id)
        shop = self.shop_repo.get_by_user(user.id)
        reviewed = [sid for sid in self.review_repo.shop_ids_for_user(user.id) if not shop or sid != shop.id]
        with atomic(self.session):
            self.vacc_repo.delete_for_user_or_pets(user.id, pet_ids)
            self.med_repo.delete_for_user_or_pets(user.id, pet_ids)
            self.task_repo.delete_for_user_or_pets(user.id, pet_ids)
            self.like_repo.delete_for_user_or_posts(user.id, post_ids)
            comment_ids = self.comment_repo.ids_for_user_or_posts(user.id, post_ids)
            self.reply_repo.delete_for_user_or_comments(user.id, comment_ids)
            self.comment_repo.delete_many(comment_ids)
            if shop:
                self._stage_shop_delete(shop)
            self.review_repo.delete_for_user(user.id)
            self.session.flush()
            for shop_id in reviewed:
                self._refresh_rating(shop_id)
            self.app_repo.delete_for_user(user.id)
            self.pet_repo.delete_for_user(user.id)
            self.post_repo.delete_many(post_ids)
            self.user_repo.delete(user.id)
        logger.info(
            "user_deleted user_id=%s pets=%d posts=%d shop=%s",
            user_id, len(pet_ids), len(post_ids), shop.id if shop else None,
        )

    def delete_pet(self, pet_id: int) -> None:
        pet = self.pet_repo.get(pet_id)
        if not pet:
            raise NotFoundError('Pet not found')
        with atomic(self.session):
            self.vacc_repo.delete_for_pet(pet.id)
            self.med_repo.delete_for_pet(pet.id)
            self.task_repo.delete_for_pet(pet.id)
            self.pet_repo.delete(pet.id)
        logger.info("admin_pet_deleted pet_id=%s", pet_id)

    def delete_shop(self, shop_id: int) -> None:
        shop = self.shop_repo.get(shop_id)
        if not shop:
            raise NotFoundError('Shop not found')
        owner = self.user_repo.get(shop.user_id)
        with atomic(self.session):
            if owner:
                owner.is_shop_owner = False
                owner.updated_at = models.utcnow()
                self.session.add(owner)
                self.session.flush()
            self._stage_shop_delete(shop)
        logger.info("admin_shop_deleted shop_id=%s", shop_id)

    # applications

    def process_application(self, application_id: int, action: str) -> dict:
        """Approve or reject a pending application.

        Approval creates the shop from the application and marks the
        applicant as a shop owner, all in one transaction.
        """
        if action not in ('approve', 'reject'):
            raise InvalidInputError('Valid action (approve/reject) is required')
        application = self.app_repo.get(application_id)
        if not application:
            raise NotFoundError('Application not found')
        if application.status != 'pending':
            raise InvalidInputError('Application has already been processed')

        if action == 'reject':
            application.status = 'rejected'
            application = self.app_repo.save(application)
            logger.info("shop_application_rejected application_id=%s", application.id)
            return {
                'message': 'Application rejected successfully',
                'application': dump(schemas.ShopApplicationOut, application),
            }

        if self.shop_repo.get_by_user(application.user_id):
            raise ConflictError('Applicant already owns a shop')
        applicant = self.user_repo.get(application.user_id)
        shop = models.Shop(
            user_id=application.user_id,
            shop_name=application.shop_name,
            shop_image=application.shop_image,
            shop_location=application.shop_location,
            latitude=application.latitude,
            longitude=application.longitude,
            bio=application.bio,
            contact_number=application.contact_number,
            shop_message=application.shop_message,
            shop_type=application.shop_type,
            opening_time=application.opening_time,
            closing_time=application.closing_time,
            available_days=list(application.available_days),
            is_available=application.is_available,
            approved=True,
        )
        application.status = 'approved'
        application.updated_at = models.utcnow()
        with atomic(self.session):
            self.session.add(application)
            self.session.add(shop)
            if applicant:
                applicant.is_shop_owner = True
                applicant.updated_at = models.utcnow()
                self.session.add(applicant)
        self.session.refresh(application)
        self.session.refresh(shop)
        logger.info("shop_application_approved application_id=%s shop_id=%s", application.id, shop.id)
        return {
            'message': 'Application approved successfully',
            'application': dump(schemas.ShopApplicationOut, application),
            'shop': dump(schemas.ShopOut, shop),
        }
