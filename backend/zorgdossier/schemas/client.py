"""Client & Record Schemas — dossier ingestion payloads.

Invariants:
    - ClientCreate requires non-blank client_id and name
    - ClientUpdate never carries client_id or created_at (immutable), and only
      bsn_encrypted may be cleared with null
    - Record defaults: date today, author "Unknown", section "General",
      type "Unknown", severity "Medium"
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ClientCreate(BaseModel):
    client_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    dob: str = ""
    bsn_encrypted: str | None = None
    wlz_profile: str = ""
    provider: str = ""

    @field_validator("client_id", "name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ClientUpdate(BaseModel):
    """Partial update; unknown keys (including client_id, created_at) are ignored."""
    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, min_length=1, max_length=200)
    dob: str | None = None
    bsn_encrypted: str | None = None
    wlz_profile: str | None = None
    provider: str | None = None

    @field_validator("name", "dob", "wlz_profile", "provider")
    @classmethod
    def not_null(cls, v: str | None, info: ValidationInfo) -> str:
        # omitted fields skip validation; only an explicit null lands here
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class NoteIn(BaseModel):
    date: datetime.date = Field(default_factory=datetime.date.today)
    author: str = "Unknown"
    section: str = "General"
    text: str = Field(min_length=1)


class MeasureIn(BaseModel):
    date: datetime.date = Field(default_factory=datetime.date.today)
    type: str = "Unknown"
    score: str | float | int = ""
    comment: str | None = None

    @field_validator("score")
    @classmethod
    def score_as_text(cls, v) -> str:
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return str(v)


class IncidentIn(BaseModel):
    date: datetime.date = Field(default_factory=datetime.date.today)
    type: str = "Unknown"
    severity: str = "Medium"
    description: str = ""


class RecordsIngest(BaseModel):
    notes: list[NoteIn] = Field(default_factory=list)
    measures: list[MeasureIn] = Field(default_factory=list)
    incidents: list[IncidentIn] = Field(default_factory=list)
