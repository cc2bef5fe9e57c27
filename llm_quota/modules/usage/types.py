from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

from llm_quota.core.types import JsonObject, JsonValue

ProviderName: TypeAlias = Literal["claude", "codex"]
Summary: TypeAlias = dict[str, JsonObject]


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    base_url: str


@dataclass(frozen=True, slots=True)
class UsageEnvelope:
    ok: bool
    usage: JsonValue = None
    summary: Summary | None = None
    error: str | None = None
    response_body: str | None = None

    @classmethod
    def success(cls, usage: JsonValue, summary: Summary) -> UsageEnvelope:
        return cls(ok=True, usage=usage, summary=summary)

    @classmethod
    def failure(cls, error: str, *, response_body: str | None = None) -> UsageEnvelope:
        return cls(ok=False, error=error, response_body=response_body)

    def to_payload(self) -> JsonObject:
        if self.ok:
            return {"ok": True, "usage": self.usage, "summary": dict(self.summary or {})}
        payload: JsonObject = {"ok": False, "error": self.error}
        if self.response_body is not None:
            payload["response_body"] = self.response_body
        return payload
