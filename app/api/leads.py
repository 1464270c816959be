import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.api.deps import get_now
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.db.session import get_db
from app.models.lead import Lead, LeadStatus
from app.schemas.lead import LeadCreate, LeadSubmitResponse, REQUIRED_LEAD_FIELDS

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/submit-lead", response_model=LeadSubmitResponse, status_code=status.HTTP_201_CREATED)
@rate_limit(lambda: settings.LEAD_SUBMIT_RATE_LIMIT, lambda: settings.RATE_LIMIT_WINDOW_SECONDS)
def submit_lead(
    request: Request,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Public lead intake from the marketing site's application form.

    Required fields are checked in a fixed order so the 400 names the
    first one missing; services must be a non-empty list.
    """
    for field_name in REQUIRED_LEAD_FIELDS:
        value = body.get(field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Missing required field: {field_name}",
            )

    services = body.get("services")
    if not isinstance(services, list) or len(services) == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select at least one service",
        )

    try:
        lead_data = LeadCreate.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        field_path = ".".join(str(p) for p in first.get("loc", ()))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid value for {field_path}",
        )

    try:
        lead = Lead(
            **lead_data.model_dump(),
            status=LeadStatus.NEW,
            submitted_at=now,
        )
        db.add(lead)
        db.commit()
        db.refresh(lead)
    except Exception:
        logger.exception("Failed to store lead submission")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit form. Please try again.",
        )

    logger.info("New lead %s submitted", lead.id)
    return LeadSubmitResponse(
        success=True,
        message="Application submitted successfully",
        lead_id=lead.id,
    )
