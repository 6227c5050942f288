"""
Shared helpers for turning pydantic failures into data-layer errors.
"""

import uuid
from typing import Any, Mapping, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from eventhub.core.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_MESSAGES = {
    "missing": "is required",
    "string_too_short": "must not be blank",
    "too_short": "must contain at least one item",
    "enum": "must be one of {expected}",
    "extra_forbidden": "is not a writable field",
    "uuid_parsing": "must be a valid id",
    "uuid_type": "must be a valid id",
}


def _describe(error: dict) -> str:
    if error.get("input", ...) is None:
        return "is required"
    kind = error["type"]
    if kind == "value_error":
        return str(error["ctx"]["error"])
    template = _MESSAGES.get(kind)
    if template is None:
        return error["msg"]
    return template.format(**error.get("ctx", {}))


def to_validation_error(exc: SchemaValidationError) -> ValidationError:
    """Report the first failing field; callers fix input one field at a time."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or None
    return ValidationError(_describe(error), field=field)


def parse_model(model: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate `data` as `model`, raising the data-layer ValidationError."""
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(data)
    except SchemaValidationError as e:
        raise to_validation_error(e) from e


def as_document_id(value: Union[str, uuid.UUID], field: str = "id") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ValidationError("must be a valid id", field=field) from e
