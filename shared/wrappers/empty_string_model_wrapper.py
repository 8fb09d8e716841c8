import re
from pydantic import BaseModel, model_validator
from typing import Any

INVISIBLE_CHARS_PATTERN = re.compile(
    r'[\u200e\u200f\u202a-\u202e\u2066-\u2069\ufeff]')


def deep_clean(value: Any):
    """Recursively convert empty strings to None and clean invisible chars."""

    # 1️⃣ Handle dictionaries
    if isinstance(value, dict):
        return {k: deep_clean(v) for k, v in value.items()}

    # 2️⃣ Handle lists
    if isinstance(value, list):
        return [deep_clean(v) for v in value]

    # 3️⃣ Handle strings
    if isinstance(value, str):
        cleaned = INVISIBLE_CHARS_PATTERN.sub("", value).strip()
        return None if cleaned == "" else cleaned

    # Default return
    return value


class EmptyStringModel(BaseModel):
    """Input model where blank strings count as missing.

    Only for flat request/query models; free-form design data must keep
    its whitespace, so it never goes through this model.
    """
    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="before")
    @classmethod
    def clean_input(cls, values):
        if isinstance(values, dict):
            return deep_clean(values)
        return values
