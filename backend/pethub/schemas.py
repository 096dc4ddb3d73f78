"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. The mobile client speaks camelCase, so
every schema uses camelCase aliases while Python code keeps snake_case
names; inputs accept either spelling.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

WEEKDAYS = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday']


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_validator('*')
    @classmethod
    def _utc_datetimes(cls, v):
        # date-only and offset-free input is read as UTC
        if isinstance(v, datetime):
            return v.replace(tzinfo=timezone.utc) if v.tzinfo is None else v.astimezone(timezone.utc)
        return v


def dump(schema: Type[BaseModel], obj: Any, **extra) -> dict:
    """Serialize `obj` through `schema` into a camelCase JSON-ready dict.

    Keyword arguments are merged into the result unchanged, so callers
    pass them already camelCased (e.g. `likesCount=3`).
    """
    data = schema.model_validate(obj).model_dump(mode='json', by_alias=True)
    data.update(extra)
    return data


def error_message(errors: List[dict]) -> str:
    """Reduce a pydantic error list to one client-facing sentence."""
    if not errors:
        return 'Invalid request'
    err = errors[0]
    loc = [str(p) for p in err.get('loc', ()) if p not in ('body', 'query', 'path', 'form')]
    if err.get('type') == 'missing' and loc:
        return f'{loc[-1]} is required'
    msg = err.get('msg') or 'Invalid request'
    if msg.startswith('Value error, '):
        msg = msg[len('Value error, '):]
    elif loc:
        msg = f'{loc[-1]}: {msg}'
    return msg


def _required_text(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f'{label} is required')
    return str(value).strip()


# ---------------------------------------------------------------- responses


class UserOut(CamelModel):
    """Full profile of a user. The password hash is never included."""
    id: int
    full_name: str
    email: str
    gender: str
    birthdate: datetime
    profile_picture: Optional[str] = None
    is_admin: bool = False
    is_shop_owner: bool = False
    created_at: datetime
    updated_at: datetime


class UserSummary(CamelModel):
    """Author block embedded in posts, comments and replies."""
    id: int
    full_name: str
    profile_picture: Optional[str] = None
    is_shop_owner: bool = False


class OwnerSummary(CamelModel):
    """Owner/applicant block shown in admin listings."""
    id: int
    full_name: str
    email: str


class PetOut(CamelModel):
    id: int
    user_id: int
    name: str
    pet_picture: Optional[str] = None
    birthdate: datetime
    type: str
    breed: str = ''
    health_condition: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class MedicalRecordOut(CamelModel):
    id: int
    user_id: int
    pet_id: int
    type: str
    medicine_name: str
    veterinarian: str
    clinic: str
    date: datetime
    created_at: datetime
    updated_at: datetime


class VaccinationRecordOut(CamelModel):
    id: int
    user_id: int
    pet_id: int
    vaccine_name: str
    date: datetime
    expiration_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TaskOut(CamelModel):
    id: int
    user_id: int
    pet_id: int
    type: str
    name: str
    description: str = ''
    time: datetime
    frequency: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PostOut(CamelModel):
    id: int
    user_id: int
    content: str
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CommentOut(CamelModel):
    id: int
    user_id: int
    post_id: int
    content: str
    created_at: datetime
    updated_at: datetime


class ReplyOut(CamelModel):
    id: int
    user_id: int
    comment_id: int
    content: str
    created_at: datetime
    updated_at: datetime


class PostLikeOut(CamelModel):
    id: int
    user_id: int
    post_id: int
    created_at: datetime


class ShopOut(CamelModel):
    id: int
    user_id: int
    shop_name: str
    shop_image: Optional[str] = None
    shop_location: str
    latitude: float
    longitude: float
    bio: str = ''
    contact_number: str = ''
    shop_message: str = ''
    shop_type: str
    opening_time: str
    closing_time: str
    available_days: List[str] = []
    is_available: bool = True
    approved: bool = False
    rating: float = 0.0
    total_reviews: int = 0
    created_at: datetime
    updated_at: datetime


class ShopMapItem(CamelModel):
    """Minimal shop shape used to drop pins on the map."""
    id: int
    shop_name: str
    latitude: float
    longitude: float
    shop_type: str
    shop_location: str
    is_available: bool


class ShopPinOut(CamelModel):
    """Public map entry; callers add `ownerName`."""
    id: int
    shop_name: str
    shop_image: Optional[str] = None
    shop_location: str
    latitude: float
    longitude: float
    shop_type: str
    opening_time: str
    closing_time: str
    is_available: bool
    approved: bool


class ShopApplicationOut(CamelModel):
    id: int
    user_id: int
    shop_name: str
    shop_image: Optional[str] = None
    shop_location: str
    latitude: float
    longitude: float
    bio: str
    contact_number: str
    shop_message: str
    shop_type: str
    opening_time: str
    closing_time: str
    available_days: List[str] = []
    is_available: bool = True
    status: str
    created_at: datetime
    updated_at: datetime


class PromotionalPostOut(CamelModel):
    id: int
    shop_id: int
    caption: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ShopReviewOut(CamelModel):
    id: int
    user_id: int
    shop_id: int
    rating: int
    review: str
    created_at: datetime


# ----------------------------------------------------------------- requests


class LoginIn(CamelModel):
    """Payload for the login endpoint."""
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RegisterIn(CamelModel):
    """Payload for both registration endpoints (JSON and multipart)."""
    full_name: str
    email: str
    birthdate: datetime
    gender: str
    password: str

    @field_validator('full_name', 'gender')
    @classmethod
    def _not_blank(cls, v: str, info) -> str:
        return _required_text(v, info.field_name.replace('_', ' '))

    @field_validator('email')
    @classmethod
    def _valid_email(cls, v: str) -> str:
        v = v.strip().lower()
        local, _, domain = v.partition('@')
        if not local or not domain:
            raise ValueError('invalid email address')
        return v

    @field_validator('password')
    @classmethod
    def _strong_enough(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError('password must be at least 6 characters')
        return v


class PetIn(CamelModel):
    """Pet fields parsed from the create/update multipart forms."""
    name: str
    birthdate: datetime
    type: str
    breed: Optional[str] = None
    health_condition: Optional[str] = None

    @field_validator('name', 'type')
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class ProfileUpdateIn(CamelModel):
    """Optional profile fields; blank values leave the stored value alone."""
    full_name: Optional[str] = None
    birthdate: Optional[datetime] = None
    gender: Optional[str] = None


class MedicalRecordIn(CamelModel):
    type: Optional[str] = None
    medicine_name: Optional[str] = None
    veterinarian: Optional[str] = None
    clinic: Optional[str] = None
    date: Optional[datetime] = None

    @model_validator(mode='after')
    def _all_present(self):
        for name in ('type', 'medicine_name', 'veterinarian', 'clinic'):
            value = getattr(self, name)
            if value is None or not value.strip():
                raise ValueError('All required fields must be provided')
            setattr(self, name, value.strip())
        if self.date is None:
            raise ValueError('All required fields must be provided')
        return self


class TaskCreateIn(CamelModel):
    """Task creation body. Presence checks live in `TaskService` so each
    missing field gets its own message."""
    pet_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    time: Optional[datetime] = None
    frequency: Optional[str] = None
    is_daily: bool = False

    @field_validator('pet_id', mode='before')
    @classmethod
    def _int_pet_id(cls, v):
        if v is None:
            return None
        try:
            return int(v)
        except (TypeError, ValueError):
            raise ValueError('Invalid petId')


class TaskUpdateIn(CamelModel):
    pet_id: Optional[int] = None
    type: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    time: Optional[datetime] = None
    frequency: Optional[str] = None


class VaccinationIn(CamelModel):
    pet_id: int
    vaccine_name: str
    date: datetime
    expiration_date: Optional[datetime] = None

    @field_validator('vaccine_name')
    @classmethod
    def _not_blank(cls, v: str) -> str:
        return _required_text(v, 'vaccineName')


class ContentIn(CamelModel):
    """Body for comments and replies; blank content is rejected by the service."""
    content: Optional[str] = None


class ShopCreateIn(CamelModel):
    """Admin payload for creating a shop directly (no application)."""
    user_id: int
    shop_name: str
    shop_location: str
    latitude: float
    longitude: float
    shop_type: str
    bio: str = ''
    contact_number: str = ''
    shop_message: str = ''
    opening_time: str = '09:00'
    closing_time: str = '17:00'
    available_days: List[str] = Field(default_factory=lambda: list(WEEKDAYS))

    @field_validator('shop_name', 'shop_location', 'shop_type')
    @classmethod
    def _not_blank(cls, v: str, info) -> str:
        return _required_text(v, info.field_name)


class ShopApplicationIn(CamelModel):
    """Shop application fields, assembled from a multipart form."""
    shop_name: str
    shop_location: str
    bio: str
    contact_number: str
    shop_message: str
    shop_type: str
    opening_time: str
    closing_time: str
    available_days: List[str]
    is_available: bool = True
    latitude: float = 0.0
    longitude: float = 0.0

    @field_validator('shop_name', 'shop_location', 'bio', 'contact_number', 'shop_message',
                     'shop_type', 'opening_time', 'closing_time')
    @classmethod
    def _not_blank(cls, v: str, info) -> str:
        return _required_text(v, info.field_name)

    @field_validator('available_days')
    @classmethod
    def _has_days(cls, v: List[str]) -> List[str]:
        days = [d.strip() for d in v if isinstance(d, str) and d.strip()]
        if not days:
            raise ValueError('at least one available day is required')
        return days


class ReviewIn(CamelModel):
    shop_id: int
    rating: int = Field(ge=1, le=5)
    review: str

    @field_validator('review')
    @classmethod
    def _short_review(cls, v: str) -> str:
        v = _required_text(v, 'review')
        if len(v) > 60:
            raise ValueError('review must be 60 characters or less')
        return v
