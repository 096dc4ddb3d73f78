"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Foreign keys are declared on every child table; deletes across tables
are performed explicitly by the services inside one transaction.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Column, DateTime, JSON, UniqueConstraint
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime column stored as UTC.

    Naive values are taken to be UTC already. SQLite drops the offset on
    write, so values read back get UTC attached again.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class User(SQLModel, table=True):
    """A registered account.

    Fields:
    - `email`: unique login name, stored lower-cased
    - `password_hash`: hashed password string (never store plaintext)
    - `is_admin` / `is_shop_owner`: role flags checked by the API
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    email: str = Field(index=True, nullable=False, unique=True)
    password_hash: str
    gender: str
    birthdate: datetime = Field(sa_type=UTCDateTime)
    profile_picture: Optional[str] = None
    is_admin: bool = Field(default=False, index=True)
    is_shop_owner: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Pet(SQLModel, table=True):
    """A pet profile owned by a user."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    name: str
    pet_picture: Optional[str] = None
    birthdate: datetime = Field(sa_type=UTCDateTime)
    type: str = Field(index=True)
    breed: str = ''
    health_condition: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Task(SQLModel, table=True):
    """A care task (feeding, walking, ...) scheduled for a pet."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    pet_id: int = Field(foreign_key='pet.id', index=True)
    type: str
    name: str
    description: str = ''
    time: datetime = Field(sa_type=UTCDateTime)
    frequency: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class MedicalRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    pet_id: int = Field(foreign_key='pet.id', index=True)
    type: str
    medicine_name: str
    veterinarian: str
    clinic: str
    date: datetime = Field(sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class VaccinationRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    pet_id: int = Field(foreign_key='pet.id', index=True)
    vaccine_name: str
    date: datetime = Field(sa_type=UTCDateTime)
    expiration_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Post(SQLModel, table=True):
    """A feed post with optional image."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    content: str
    image: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Comment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    post_id: int = Field(foreign_key='post.id', index=True)
    content: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Reply(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    comment_id: int = Field(foreign_key='comment.id', index=True)
    content: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class PostLike(SQLModel, table=True):
    """A like; at most one per (user, post)."""
    __table_args__ = (UniqueConstraint('user_id', 'post_id', name='uq_postlike_user_post'),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    post_id: int = Field(foreign_key='post.id', index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Shop(SQLModel, table=True):
    """An approved shop. Each user owns at most one (`user_id` is unique).

    `available_days` is a JSON list of weekday names. `rating` is the
    mean of all `ShopReview.rating` values and `total_reviews` their count.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', unique=True)
    shop_name: str
    shop_image: Optional[str] = None
    shop_location: str
    latitude: float = 0.0
    longitude: float = 0.0
    bio: str = ''
    contact_number: str = ''
    shop_message: str = ''
    shop_type: str
    opening_time: str
    closing_time: str
    available_days: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_available: bool = True
    approved: bool = Field(default=False, index=True)
    rating: float = 0.0
    total_reviews: int = 0
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class ShopApplication(SQLModel, table=True):
    """A user's request to open a shop, reviewed by an admin.

    `status` moves from `pending` to either `approved` or `rejected`
    exactly once.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    shop_name: str
    shop_image: Optional[str] = None
    shop_location: str
    latitude: float = 0.0
    longitude: float = 0.0
    bio: str
    contact_number: str
    shop_message: str
    shop_type: str
    opening_time: str
    closing_time: str
    available_days: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_available: bool = True
    status: str = Field(default='pending', index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class PromotionalPost(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: int = Field(foreign_key='shop.id', index=True)
    caption: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class ShopReview(SQLModel, table=True):
    __table_args__ = (UniqueConstraint('user_id', 'shop_id', name='uq_shopreview_user_shop'),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    shop_id: int = Field(foreign_key='shop.id', index=True)
    rating: int
    review: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
