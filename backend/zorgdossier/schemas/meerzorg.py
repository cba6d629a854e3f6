"""Meerzorg Schemas — application CRUD and workflow payloads.

Invariants:
    - New applications default to version "2026" and empty form data, whatever
      the current date
    - status values constrained to ApplicationStatus
    - submitted_by presence checked in the route so the error names the field
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

DEFAULT_APPLICATION_VERSION = "2026"

ApplicationStatusValue = Literal[
    "draft", "submitted", "approved", "rejected", "needs_revision",
]


class ApplicationCreate(BaseModel):
    client_id: str = Field(min_length=1)
    version: Literal["2025", "2026"] = DEFAULT_APPLICATION_VERSION
    form_data: dict[str, Any] = Field(default_factory=dict)


class ApplicationUpdate(BaseModel):
    status: ApplicationStatusValue | None = None
    form_data: dict[str, Any] | None = None
    submitted_by: str | None = None


class SubmitRequest(BaseModel):
    submitted_by: str | None = None
    reviewer_role: str = "professional"


class MigrateRequest(BaseModel):
    target_version: str = Field(min_length=1)
    confirm_changes: bool = False
