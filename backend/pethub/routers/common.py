"""Helpers shared by the controllers for multipart form input."""

from typing import Optional, Type

from pydantic import BaseModel, ValidationError

from ..errors import InvalidInputError
from ..schemas import error_message


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


def require(message: str, *values: Optional[str]) -> None:
    """Raise `InvalidInputError(message)` unless every value is non-blank."""
    if any(blank_to_none(v) is None for v in values):
        raise InvalidInputError(message)


def parse_form(schema: Type[BaseModel], **values):
    """Validate form fields through `schema`; blank fields count as absent."""
    data = {k: v for k, v in values.items() if v is not None and not (isinstance(v, str) and not v.strip())}
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(error_message(exc.errors()))
