from __future__ import annotations

from collections.abc import Mapping
from typing import TypeGuard

from llm_quota.core.types import JsonValue


def is_json_mapping(value: object) -> TypeGuard[Mapping[str, JsonValue]]:
    return isinstance(value, Mapping)


def is_number(value: object) -> TypeGuard[int | float]:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
