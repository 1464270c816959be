"""
Admin API endpoints: traffic reports and lead management.
Only accessible to authenticated admin accounts.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_admin, get_now
from app.db.session import get_db
from app.models.admin import Admin
from app.models.lead import Lead, LeadStatus
from app.schemas.analytics import BasicAnalyticsReport, EnhancedAnalyticsReport
from app.schemas.lead import Lead as LeadSchema, LeadList, LeadStatusUpdateResponse, VALID_LEAD_STATUSES
from app.services.reporting import DEFAULT_PERIOD_DAYS, build_basic_report, build_enhanced_report

logger = logging.getLogger(__name__)

router = APIRouter()


# Analytics
@router.get("/analytics", response_model=BasicAnalyticsReport)
def get_basic_analytics(
    period: int = Query(DEFAULT_PERIOD_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    admin: Admin = Depends(get_current_admin),
):
    try:
        return build_basic_report(db, period, now)
    except Exception:
        logger.exception("Failed to build basic analytics report (period=%s)", period)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch analytics",
        )


@router.get("/analytics-enhanced", response_model=EnhancedAnalyticsReport)
def get_enhanced_analytics(
    period: int = Query(DEFAULT_PERIOD_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    admin: Admin = Depends(get_current_admin),
):
    """Full dashboard bundle for the last `period` days."""
    try:
        return build_enhanced_report(db, period, now)
    except Exception:
        logger.exception("Failed to build enhanced analytics report (period=%s)", period)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch analytics",
        )


# Leads
@router.get("/leads", response_model=LeadList)
def list_leads(
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """All leads, newest submission first."""
    leads = db.query(Lead).order_by(Lead.submitted_at.desc()).all()
    return LeadList(leads=[LeadSchema.model_validate(lead) for lead in leads], total=len(leads))


@router.patch("/leads/{lead_id}", response_model=LeadStatusUpdateResponse)
def update_lead_status(
    lead_id: str,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    admin: Admin = Depends(get_current_admin),
):
    new_status = body.get("status")
    if new_status not in VALID_LEAD_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status value")

    try:
        lead_uuid = uuid.UUID(lead_id)
    except ValueError:
        # Malformed ids cannot match any lead
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    lead = db.query(Lead).filter(Lead.id == lead_uuid).first()
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    lead.status = LeadStatus(new_status)
    lead.updated_at = now
    db.commit()
    logger.info("Lead %s status set to %s by %s", lead.id, new_status, admin.email)

    return LeadStatusUpdateResponse(success=True, message="Lead status updated")
