from typing import Any, Mapping, Type, TypeVar, Union

import pydantic

from projecthub.core.exceptions import ValidationError, field_errors

M = TypeVar("M", bound=pydantic.BaseModel)


def validate_payload(schema: Type[M], data: Union[M, Mapping[str, Any], None]) -> M:
    """
    Turn an untyped payload into ``schema`` or raise ``ValidationError``
    listing every violated field. Nothing is applied on failure.
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(field_errors(exc.errors())) from exc


def provided_fields(payload: pydantic.BaseModel) -> set:
    """Python names of the fields the caller actually sent (explicit nulls included)."""
    return set(payload.model_fields_set)
