"""Shared schema configuration and field checks."""

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case keys; serializes camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def missing_fields(body: BaseModel, required: Iterable[str]) -> list[str]:
    """Names (in ``required`` order) whose value is absent or blank."""
    missing = []
    for name in required:
        value: Any = getattr(body, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value
