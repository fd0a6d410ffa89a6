import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_uuid(value: Optional[str]) -> Optional[str]:
    """Validate a UUID-shaped id and return it in canonical form."""
    if value is None:
        return None
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise ValueError("Invalid uuid")


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value
