"""Meerzorg Applications — CRUD for supplemental care-funding applications.

Invariants:
    - An application always belongs to an existing client (404 otherwise)
    - New applications start as draft, in version "2026" unless given
    - Setting status to submitted through PUT also sets submitted_at
    - DELETE cascades to form fields, evidence, checks and reviews

Design Decisions:
    - get_application_or_404 and application_to_dict exported for the workflow,
      evidence and review routes
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.core.domain_types import ApplicationStatus
from zorgdossier.core.errors import ErrorContext, ResourceNotFoundError
from zorgdossier.infrastructure.database import get_db
from zorgdossier.models.meerzorg_application import MeerzorgApplication
from zorgdossier.models.meerzorg_form_field import MeerzorgFormField
from zorgdossier.schemas.meerzorg import ApplicationCreate, ApplicationUpdate
from zorgdossier.services.dossier_loader import load_client_or_404

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/meerzorg", tags=["meerzorg"])


async def get_application_or_404(
    application_id: UUID, db: AsyncSession,
) -> MeerzorgApplication:
    """Get application or raise 404. Exported for workflow, evidence and reviews."""
    application = await db.get(MeerzorgApplication, application_id)
    if not application:
        raise ResourceNotFoundError(
            "Application", str(application_id),
            ErrorContext(application_id=str(application_id)),
        )
    return application


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def application_to_dict(application: MeerzorgApplication) -> dict:
    return {
        "id": str(application.id),
        "client_id": application.client_id,
        "version": application.version,
        "form_data": application.form_data,
        "status": application.status,
        "submitted_by": application.submitted_by,
        "submitted_at": _iso(application.submitted_at),
        "created_at": _iso(application.created_at),
        "updated_at": _iso(application.updated_at),
    }


def form_field_to_dict(field: MeerzorgFormField) -> dict:
    return {
        "id": str(field.id),
        "field_name": field.field_name,
        "field_value": field.field_value,
        "source_type": field.source_type,
        "source_id": field.source_id,
        "confidence": field.confidence,
    }


@router.get("")
async def list_applications(
    client_id: str | None = Query(None), db: AsyncSession = Depends(get_db),
):
    """All applications, or a single client's, newest first."""
    query = select(MeerzorgApplication).order_by(MeerzorgApplication.created_at.desc())
    if client_id:
        query = query.where(MeerzorgApplication.client_id == client_id)
    result = await db.execute(query)
    return [application_to_dict(a) for a in result.scalars().all()]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_application(
    body: ApplicationCreate, db: AsyncSession = Depends(get_db),
):
    """Create a draft application for an existing client."""
    await load_client_or_404(db, body.client_id)
    application = MeerzorgApplication(
        client_id=body.client_id,
        version=body.version,
        form_data=body.form_data,
        status=ApplicationStatus.DRAFT.value,
    )
    db.add(application)
    await db.commit()
    await db.refresh(application)
    logger.info(
        f"Meerzorg application created: {application.id}",
        extra={"client_id": body.client_id, "application_id": str(application.id)},
    )
    return application_to_dict(application)


@router.get("/{application_id}")
async def get_application(
    application_id: UUID, db: AsyncSession = Depends(get_db),
):
    """Application with its extracted form fields."""
    application = await get_application_or_404(application_id, db)
    return {
        **application_to_dict(application),
        "form_fields": [form_field_to_dict(f) for f in application.form_fields],
    }


@router.put("/{application_id}")
async def update_application(
    application_id: UUID,
    body: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
):
    application = await get_application_or_404(application_id, db)
    if body.status:
        application.status = body.status
        if body.status == ApplicationStatus.SUBMITTED.value:
            application.submitted_at = datetime.now(timezone.utc)
    if body.form_data is not None:
        application.form_data = body.form_data
    if body.submitted_by:
        application.submitted_by = body.submitted_by
    await db.commit()
    await db.refresh(application)
    return application_to_dict(application)


@router.delete("/{application_id}")
async def delete_application(
    application_id: UUID, db: AsyncSession = Depends(get_db),
):
    application = await get_application_or_404(application_id, db)
    await db.delete(application)
    await db.commit()
    return {"success": True}
