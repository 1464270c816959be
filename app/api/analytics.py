"""
Public tracking ingestion endpoint. Unauthenticated, since the browser
client has no credentials; payloads are validated strictly.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_now, get_geo_lookup
from app.db.session import get_db
from app.schemas.event import TrackResponse
from app.services.geolocation import get_client_ip
from app.services.ingestion import (
    IngestionContext,
    InvalidEventError,
    ingest_event,
    parse_event,
    record_event_error,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/track", response_model=TrackResponse)
def track_event(
    request: Request,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    geo_lookup: Callable = Depends(get_geo_lookup),
):
    """Accept one {eventType, data} envelope from the tracking client."""
    event_type = body.get("eventType")
    try:
        kind, payload = parse_event(event_type, body.get("data"))
    except InvalidEventError as e:
        logger.info("Rejected tracking event %r: %s", event_type, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    ctx = IngestionContext(now=now, client_ip=get_client_ip(request.headers), geo_lookup=geo_lookup)
    try:
        ingest_event(db, kind, payload, ctx)
    except Exception as e:
        logger.exception("Failed to record %s event", kind.value)
        db.rollback()
        record_event_error(db, kind.value, body.get("data"), str(e), received_at=now)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to track event",
        )

    return TrackResponse(success=True)
