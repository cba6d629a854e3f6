"""Evidence & Review Schemas — manual evidence links and review decisions.

Invariants:
    - confidence_score in [0, 1], default 0.8
    - Review status one of pending/approved/rejected/needs_revision
    - rejected and needs_revision reviews must carry comments
"""

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class EvidenceCreate(BaseModel):
    application_id: UUID
    field_name: str = Field(min_length=1)
    field_label: str | None = None
    source_type: str = Field(min_length=1)
    source_id: str = Field(min_length=1)
    evidence_text: str = Field(min_length=1)
    confidence_score: float = Field(0.8, ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ReviewCreate(BaseModel):
    application_id: UUID
    reviewer_role: str = Field(min_length=1)
    reviewer_name: str = Field(min_length=1)
    status: Literal["pending", "approved", "rejected", "needs_revision"]
    comments: str | None = None

    @model_validator(mode="after")
    def comments_required_for_rejection(self):
        if self.status in ("rejected", "needs_revision") and not self.comments:
            raise ValueError(
                "Comments are required for rejected or needs_revision status",
            )
        return self
