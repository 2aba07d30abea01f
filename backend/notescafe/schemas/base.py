"""Base schema configuration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base schema with common configuration.

    Fields are snake_case in Python and camelCase in stored documents and JSON
    (``full_name`` <-> ``fullName``). Either spelling is accepted on input.
    """

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TimestampMixin(BaseSchema):
    """Mixin for server-assigned createdAt/updatedAt timestamps."""

    created_at: datetime | None = None
    updated_at: datetime | None = None
