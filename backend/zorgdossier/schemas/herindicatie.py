"""Herindicatie Schemas — trend, risk, MD review and criteria/report payloads.

Invariants:
    - MD review with decision "observe" requires observation_period_days
    - criteria_set defaults to herindicatie.vv8.2026, max_evidence to 3
    - Report sections default to all four, in canonical order
    - Criterion evidence items are objects ({source, row, snippet}); anything
      else is rejected before rendering
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TrendAnalyzeRequest(BaseModel):
    client_id: str = Field(min_length=1)
    metric_types: list[str] | None = None
    period_months: int = Field(6, ge=1, le=120)


class ManualRiskFlag(BaseModel):
    flag_type: Literal["increased_care", "high_incidents", "deteriorating_adl", "other"]
    severity: Literal["low", "medium", "high", "critical"]
    description: str = Field(min_length=1)
    evidence: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)


class RiskFlagRequest(BaseModel):
    client_id: str = Field(min_length=1)
    auto_detect: bool = True
    manual_flags: list[ManualRiskFlag] = Field(default_factory=list)


class MdReviewCreate(BaseModel):
    client_id: str = Field(min_length=1)
    reviewer_name: str = Field(min_length=1)
    reviewer_role: Literal["physician", "psychologist", "ergo", "physio", "nurse"]
    clinical_notes: str = Field(min_length=1)
    decision: Literal["approve", "observe", "reject"]
    observation_period_days: int | None = Field(None, gt=0)

    @model_validator(mode="after")
    def observation_period_for_observe(self):
        if self.decision == "observe" and not self.observation_period_days:
            raise ValueError(
                'observation_period_days is required when decision is "observe"',
            )
        return self


class Period(BaseModel):
    from_: str = Field(alias="from", min_length=1)
    to: str = Field(min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class EvaluateCriteriaRequest(BaseModel):
    client_id: str = Field(min_length=1)
    period: Period
    criteria_set: Literal["herindicatie.vv7.2026", "herindicatie.vv8.2026"] = (
        "herindicatie.vv8.2026"
    )
    max_evidence: int = Field(3, gt=0)


class EvidenceItem(BaseModel):
    """One cited dossier fragment; extra keys from the evaluation pass through."""
    model_config = ConfigDict(extra="allow")

    source: str | None = None
    row: int | None = None
    snippet: str = ""


class CriterionPayload(BaseModel):
    id: str
    status: str
    argument: str
    evidence: list[EvidenceItem] = Field(default_factory=list)
    confidence: float = 0.0
    uncertainty: str | None = None


class ComposeReportRequest(BaseModel):
    client_id: str = Field(min_length=1)
    criteria_payload: list[CriterionPayload]
    sections: list[Literal["aanleiding", "ontwikkelingen", "criteria", "conclusie"]] = Field(
        default_factory=lambda: ["aanleiding", "ontwikkelingen", "criteria", "conclusie"],
    )
    tone: Literal["zakelijk-beknopt", "formeel", "uitgebreid"] = "zakelijk-beknopt"


class ExportOptions(BaseModel):
    anonymize: bool = False
    include_evidence_appendix: bool = True


class ExportReportRequest(BaseModel):
    client_id: str = Field(min_length=1)
    period: Period
    criteria: list[CriterionPayload]
    options: ExportOptions = Field(default_factory=ExportOptions)
