"""
Shared pydantic base for CRM records.

Persisted documents use camelCase keys (leadId, createdAt, clientCount) so a
snapshot keeps the layout of the browser-era store; Python code uses
snake_case attributes. Assignments are validated, so an enum field can never
hold a value outside its closed set.
"""

from datetime import date, datetime, time, timezone
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..errors import ValidationError


class CRMModel(BaseModel):
    """Base model for every stored record."""

    model_config = {
        'alias_generator': to_camel,
        'populate_by_name': True,
        'validate_assignment': True,
    }

    def to_document(self) -> dict:
        """Serialize to the JSON-ready, camelCase storage form."""
        return self.model_dump(mode='json', by_alias=True)


def as_utc(value: date | datetime) -> datetime:
    """Promote a date or naive datetime to an aware UTC datetime."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_record(model: type[CRMModel], **fields: Any) -> Any:
    """
    Construct a record, reporting bad values as the core's ValidationError.

    Raises:
        ValidationError: A field failed model validation
    """
    try:
        return model(**fields)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid {model.__name__}",
            context={'errors': exc.errors(include_url=False)},
        ) from exc


def assign_fields(record: CRMModel, fields: dict[str, Any]) -> None:
    """
    Assign fields on a record in order, stopping at the first bad value.

    Raises:
        ValidationError: A value failed model validation
    """
    try:
        for name, value in fields.items():
            setattr(record, name, value)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid value for {type(record).__name__}",
            context={'errors': exc.errors(include_url=False)},
        ) from exc
