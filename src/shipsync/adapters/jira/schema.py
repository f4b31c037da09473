"""Pydantic models describing the Jira Cloud REST v3 payloads we consume."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class JiraBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class StatusPayload(JiraBaseModel):
    name: str = ""


class IssuePayload(JiraBaseModel):
    key: str
    fields: dict[str, object] = Field(default_factory=dict)

    @property
    def status_name(self) -> str:
        status = self.fields.get("status")
        if isinstance(status, dict):
            return StatusPayload.model_validate(status).name
        return ""


class SearchResponse(JiraBaseModel):
    issues: list[IssuePayload] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")
    is_last: bool | None = Field(default=None, alias="isLast")


class TransitionTarget(JiraBaseModel):
    name: str = ""


class TransitionPayload(JiraBaseModel):
    id: str
    name: str = ""
    to: TransitionTarget | None = None


class TransitionsResponse(JiraBaseModel):
    transitions: list[TransitionPayload] = Field(default_factory=list)


class ErrorResponse(JiraBaseModel):
    error_messages: list[str] = Field(default_factory=list, alias="errorMessages")
    errors: dict[str, str] = Field(default_factory=dict)

    def summary(self) -> str:
        messages = [*self.error_messages, *(f"{key}: {value}" for key, value in self.errors.items())]
        return "; ".join(messages)
