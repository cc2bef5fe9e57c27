from __future__ import annotations

from collections.abc import Mapping

from llm_quota.core.types import JsonValue
from llm_quota.core.utils.json_guards import is_json_mapping, is_number
from llm_quota.modules.usage.types import Summary

CLAUDE_WINDOWS = ("five_hour", "seven_day", "seven_day_sonnet")
CODEX_WINDOWS = (
    ("primary_window", "five_hour"),
    ("secondary_window", "seven_day"),
)
CODEX_WINDOW_FIELDS = ("limit_window_seconds", "reset_after_seconds", "reset_at", "used_percent")

_CLAUDE_PERCENT_LEFT_FIELDS = ("percent_left", "remaining_percent")


def summarize_claude(usage: JsonValue) -> Summary:
    summary: Summary = {}
    if not is_json_mapping(usage):
        return summary
    for key in CLAUDE_WINDOWS:
        window = usage.get(key)
        if not is_json_mapping(window):
            continue
        summary[key] = {
            "utilization": window.get("utilization"),
            "percent_left": _claude_percent_left(window),
            "resets_at": window.get("resets_at"),
        }
    return summary


def summarize_codex(usage: JsonValue) -> Summary:
    summary: Summary = {}
    rate_limit = usage.get("rate_limit") if is_json_mapping(usage) else None
    if not is_json_mapping(rate_limit):
        return summary
    for source_key, name in CODEX_WINDOWS:
        window = rate_limit.get(source_key)
        if not is_json_mapping(window):
            continue
        summary[name] = {field: window[field] for field in CODEX_WINDOW_FIELDS if field in window}
    return summary


def _claude_percent_left(window: Mapping[str, JsonValue]) -> int | float | None:
    for field in _CLAUDE_PERCENT_LEFT_FIELDS:
        value = window.get(field)
        if is_number(value):
            return value
    utilization = window.get("utilization")
    if is_number(utilization):
        return round(100 - utilization, 2)
    return None
