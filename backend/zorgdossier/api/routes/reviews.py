"""Application Reviews — reviewer decisions on Meerzorg applications.

Invariants:
    - rejected and needs_revision reviews carry comments (schema-enforced)
    - approved, rejected and needs_revision also set the application status
    - Listing without application_id returns every review
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.api.routes.meerzorg import get_application_or_404
from zorgdossier.core.domain_types import ReviewStatus
from zorgdossier.infrastructure.database import get_db
from zorgdossier.models.review_workflow import ReviewWorkflow
from zorgdossier.schemas.evidence import ReviewCreate
from zorgdossier.services.audit_log import record_audit_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/reviews", tags=["reviews"])

_DECISIVE = (
    ReviewStatus.APPROVED.value,
    ReviewStatus.REJECTED.value,
    ReviewStatus.NEEDS_REVISION.value,
)


def review_to_dict(review: ReviewWorkflow) -> dict:
    return {
        "id": str(review.id),
        "application_id": str(review.application_id),
        "reviewer_role": review.reviewer_role,
        "reviewer_name": review.reviewer_name,
        "status": review.status,
        "comments": review.comments,
        "created_at": review.created_at.isoformat() if review.created_at else None,
    }


@router.get("")
async def list_reviews(
    application_id: UUID | None = Query(None), db: AsyncSession = Depends(get_db),
):
    """Reviews for one application, or all reviews, newest first."""
    query = select(ReviewWorkflow).order_by(ReviewWorkflow.created_at.desc())
    if application_id:
        query = query.where(ReviewWorkflow.application_id == application_id)
    reviews = (await db.execute(query)).scalars().all()
    return {"reviews": [review_to_dict(r) for r in reviews], "count": len(reviews)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(body: ReviewCreate, db: AsyncSession = Depends(get_db)):
    application = await get_application_or_404(body.application_id, db)
    review = ReviewWorkflow(
        application_id=application.id,
        reviewer_role=body.reviewer_role,
        reviewer_name=body.reviewer_name,
        status=body.status,
        comments=body.comments,
    )
    db.add(review)
    if body.status in _DECISIVE:
        application.status = body.status
    await db.flush()
    record_audit_event(
        db, body.reviewer_name, "review_submitted", application.client_id,
        {
            "review_id": str(review.id),
            "application_id": str(application.id),
            "status": body.status,
        },
    )
    await db.commit()
    logger.info(
        f"Review {body.status} by {body.reviewer_name}",
        extra={"client_id": application.client_id, "application_id": str(application.id)},
    )
    return {
        "id": str(review.id),
        "message": "Review submitted successfully",
        "status": body.status,
    }
