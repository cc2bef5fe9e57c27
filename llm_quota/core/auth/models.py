from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class ClaudeOAuthSection(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    access_token: StrictStr | None = Field(default=None, alias="accessToken")


class ClaudeCredentialsFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    claude_ai_oauth: ClaudeOAuthSection | None = Field(default=None, alias="claudeAiOauth")


class CodexTokens(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: StrictStr | None = None
    account_id: StrictStr | None = None


class CodexAuthFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tokens: CodexTokens | None = None
