"""Domain Types — enums and bounded value types shared across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching in rule logic
    - Confidence values are bounded 0.0–1.0
    - Enum values are the exact wire/DB strings (Dutch where the domain is Dutch)

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
"""

from enum import Enum
from typing import NewType


# ─── Value Types ─────────────────────────────────────────────────

Confidence = NewType("Confidence", float)   # 0.0–1.0
Relevance = NewType("Relevance", float)     # 0.0–1.0


# ─── Frameworks ──────────────────────────────────────────────────

class FrameworkType(str, Enum):
    """Regulatory frameworks with their own rule tables."""
    TOETSINGSKADER = "toetsingskader"
    VV8 = "vv8"
    MEERZORG = "meerzorg"


# ─── Normative Checks ────────────────────────────────────────────

class CheckCategory(str, Enum):
    """Rule category — persisted as NormativeCheck.check_type."""
    REQUIRED_FIELD = "required_field"
    TOETSINGSKADER_RULE = "toetsingskader_rule"
    COMPLETENESS = "completeness"
    CONSISTENCY = "consistency"


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"


class Severity(str, Enum):
    """Shared by checks and risk flags. Ordered low → critical."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Recommendation(str, Enum):
    """Submission readiness derived from a check summary."""
    READY = "ready"
    NEEDS_REVISION = "needs_revision"
    BLOCKED = "blocked"


# ─── Meerzorg Applications & Reviews ─────────────────────────────

class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVISION = "needs_revision"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVISION = "needs_revision"


class MdReviewerRole(str, Enum):
    PHYSICIAN = "physician"
    PSYCHOLOGIST = "psychologist"
    ERGO = "ergo"
    PHYSIO = "physio"
    NURSE = "nurse"


class MdDecision(str, Enum):
    APPROVE = "approve"
    OBSERVE = "observe"
    REJECT = "reject"


# ─── Evidence ────────────────────────────────────────────────────

class SourceType(str, Enum):
    """Dossier record kinds that can back a claim."""
    NOTE = "note"
    MEASURE = "measure"
    INCIDENT = "incident"
    DOCUMENT = "document"


# ─── Herindicatie ────────────────────────────────────────────────

class CriterionStatus(str, Enum):
    """Outcome of evaluating one herindicatie criterion."""
    UNKNOWN = "unknown"
    VOLDOET = "voldoet"
    NIET_VOLDOET = "niet_voldoet"
    ONVOLDOENDE_BEWIJS = "onvoldoende_bewijs"
    TOEGENOMEN_BEHOEFTE = "toegenomen_behoefte"
    VERSLECHTERD = "verslechterd"


CHANGED_STATUSES = frozenset({
    CriterionStatus.VERSLECHTERD.value,
    CriterionStatus.TOEGENOMEN_BEHOEFTE.value,
})


class CriteriaSet(str, Enum):
    VV8_2026 = "herindicatie.vv8.2026"
    VV7_2026 = "herindicatie.vv7.2026"


class ReportSection(str, Enum):
    AANLEIDING = "aanleiding"
    ONTWIKKELINGEN = "ontwikkelingen"
    CRITERIA = "criteria"
    CONCLUSIE = "conclusie"


class ReportTone(str, Enum):
    ZAKELIJK_BEKNOPT = "zakelijk-beknopt"
    FORMEEL = "formeel"
    UITGEBREID = "uitgebreid"


# ─── Monitoring ──────────────────────────────────────────────────

class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class MetricType(str, Enum):
    CARE_HOURS = "care_hours"
    INCIDENT_COUNT = "incident_count"
    ADL_SCORE = "adl_score"
    BPSD_SCORE = "bpsd_score"


class RiskFlagType(str, Enum):
    INCREASED_CARE = "increased_care"
    HIGH_INCIDENTS = "high_incidents"
    DETERIORATING_ADL = "deteriorating_adl"
    OTHER = "other"
