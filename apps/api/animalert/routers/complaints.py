"""Complaints router - public petition submission and template lookup.

Unauthenticated endpoints for citizens to:
- List incident types (petition templates)
- Preview a template
- Submit a petition
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from animalert.core.deps import get_db
from animalert.core.rate_limit import COMPLAINT_SUBMIT_LIMIT, limiter
from animalert.schemas.complaint import (
    ComplaintCreate,
    ComplaintSubmitResponse,
    ComplaintTemplateRead,
    ComplaintTemplateTypeRead,
)
from animalert.services import complaint_service, complaint_template_service
from animalert.services.errors import ComplaintSubmissionError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/complaints",
    response_model=ComplaintSubmitResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(COMPLAINT_SUBMIT_LIMIT)
def submit_complaint(
    request: Request,
    data: ComplaintCreate,
    db: Session = Depends(get_db),
) -> ComplaintSubmitResponse:
    """Generate the petition PDF, store the complaint and email the institution."""
    try:
        result = complaint_service.generate_and_send_complaint(db, data)
    except ComplaintSubmissionError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit complaint",
        )
    return ComplaintSubmitResponse(
        success=True,
        public_id=result.public_id,
        internal_id=result.internal_id,
    )


@router.get("/complaint-templates", response_model=list[ComplaintTemplateTypeRead])
def list_complaint_templates(db: Session = Depends(get_db)):
    """Incident types for the petition form dropdown."""
    return [
        ComplaintTemplateTypeRead(id=t.id, display_name=t.display_name)
        for t in complaint_template_service.list_template_types(db)
    ]


@router.get("/complaint-templates/{template_id}", response_model=ComplaintTemplateRead)
def get_complaint_template(template_id: int, db: Session = Depends(get_db)):
    template = complaint_template_service.get_template(db, template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return ComplaintTemplateRead(
        id=template.id,
        display_name=template.display_name,
        html=template.html,
        category_id=template.category_id,
    )
