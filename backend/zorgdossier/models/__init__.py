"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Client is the aggregate root; dossier records scoped by client_id
    - MeerzorgApplication owns its form fields, evidence, checks and reviews

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from zorgdossier.models.client import Client  # noqa: F401
from zorgdossier.models.note import Note  # noqa: F401
from zorgdossier.models.measure import Measure  # noqa: F401
from zorgdossier.models.incident import Incident  # noqa: F401
from zorgdossier.models.meerzorg_application import MeerzorgApplication  # noqa: F401
from zorgdossier.models.meerzorg_form_field import MeerzorgFormField  # noqa: F401
from zorgdossier.models.evidence import Evidence  # noqa: F401
from zorgdossier.models.normative_check import NormativeCheck  # noqa: F401
from zorgdossier.models.review_workflow import ReviewWorkflow  # noqa: F401
from zorgdossier.models.md_review import MdReview  # noqa: F401
from zorgdossier.models.trend_record import TrendRecord  # noqa: F401
from zorgdossier.models.risk_flag import RiskFlag  # noqa: F401
from zorgdossier.models.audit_event import AuditEvent  # noqa: F401
