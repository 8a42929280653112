"""
Shared pydantic base for JSON-backed configs.

Records on disk use camelCase keys (nominalRange, harmParams, ...);
Python code uses snake_case. Numbers must arrive as JSON numbers -
"30" is a schema error, not 30.
"""

from __future__ import annotations
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def _reject_strings(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        raise ValueError("expected a number, got a string")
    return value


Number = Annotated[float, BeforeValidator(_reject_strings)]
Count = Annotated[int, BeforeValidator(_reject_strings)]


class SpearModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_dict(self) -> dict:
        """camelCase dict, as stored on disk."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict):
        return cls.model_validate(data)


class Point(SpearModel):
    x: Number
    y: Number
