"""
Base schema for all models.

JSON field names are camelCase (``clientName``, ``createdAt``) so snapshots
and API payloads keep the shape the dashboard has always stored; Python code
uses the snake_case attribute names.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - camelCase aliases, snake_case names accepted too
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
