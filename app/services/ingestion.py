"""
Tracking event ingestion.

Each event kind maps to one handler that persists it and applies its side
effects on the session aggregate. Session aggregate updates are atomic
single-statement upserts so concurrent events for the same session never
lose increments or pages.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ValidationError
from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session, aliased

from app.core.config import settings
from app.db.upsert import dialect_insert
from app.models.event_error import EventError
from app.models.interaction import ClickEvent, ScrollEvent, FormInteraction, FormSubmission
from app.models.page_view import PageView
from app.models.session import UserSession, SessionPage
from app.schemas.event import (
    EventType,
    EVENT_PAYLOADS,
    PageViewData,
    PageExitData,
    ScrollData,
    ClickData,
    FormInteractionData,
    FormSubmissionData,
)
from app.services.geolocation import GeoLocation, GeoLookupResult, lookup_geolocation
from app.services.referrer import categorize_referrer, extract_search_keywords, SEARCH
from app.services.user_agent import get_browser, get_os, device_from_user_agent, UNKNOWN

logger = logging.getLogger(__name__)

# A session is a bounce when it saw one page and lasted less than this
BOUNCE_THRESHOLD_MS = 30_000

UTM_FIELDS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")


class InvalidEventError(ValueError):
    """Event envelope or payload failed validation; maps to HTTP 400."""


@dataclass
class IngestionContext:
    now: datetime
    client_ip: Optional[str] = None
    geo_lookup: Callable[[Optional[str]], GeoLookupResult] = lookup_geolocation


def parse_event(event_type: Any, data: Any) -> Tuple[EventType, BaseModel]:
    """Validate the {eventType, data} envelope into a typed payload."""
    if not event_type or not isinstance(event_type, str):
        raise InvalidEventError("Missing eventType")
    try:
        kind = EventType(event_type)
    except ValueError:
        raise InvalidEventError("Invalid event type")

    if not isinstance(data, dict):
        raise InvalidEventError("Missing or invalid event data")

    try:
        payload = EVENT_PAYLOADS[kind].model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(p) for p in first.get("loc", ()))
        raise InvalidEventError(f"Invalid event data: {location} {first.get('msg', '')}".strip())
    return kind, payload


def _known(value: Optional[str]) -> Optional[str]:
    return None if not value or value == UNKNOWN else value


def record_pageview(db: Session, data: PageViewData, ctx: IngestionContext) -> None:
    referrer_info = categorize_referrer(data.referrer, data.utm_source, settings.SITE_HOSTNAME)
    keywords = None
    if referrer_info["category"] == SEARCH:
        keywords = extract_search_keywords(data.referrer)

    geo = ctx.geo_lookup(ctx.client_ip).location if ctx.client_ip else GeoLocation()

    # Client values first, server-side UA detection as fallback
    browser = _known(data.browser) or _known(get_browser(data.user_agent))
    os_name = _known(data.os) or _known(get_os(data.user_agent))
    device = data.device or device_from_user_agent(data.user_agent)
    # Lookup result wins over client-supplied location
    country = geo.country or data.country
    city = geo.city or data.city

    # Blank UTM values (e.g. "?utm_source=") count as absent
    utm_values = {f: getattr(data, f) or None for f in UTM_FIELDS}

    page_view = PageView(
        session_id=data.session_id,
        page=data.page,
        timestamp=ctx.now,
        user_agent=data.user_agent,
        referrer=data.referrer,
        referrer_category=referrer_info["category"],
        referrer_source=referrer_info["source"],
        search_keywords=keywords,
        country=country,
        country_code=geo.country_code,
        city=city,
        region=geo.region,
        latitude=geo.latitude,
        longitude=geo.longitude,
        timezone=geo.timezone,
        ip=geo.ip,
        device=device,
        browser=browser,
        os=os_name,
        screen_resolution=data.screen_resolution,
        entry_page=data.entry_page,
        **utm_values,
    )
    db.add(page_view)
    db.commit()

    stmt = dialect_insert(db, UserSession).values(
        session_id=data.session_id,
        first_seen=ctx.now,
        last_seen=ctx.now,
        page_views=1,
        device=device,
        browser=browser,
        os=os_name,
        country=country,
        city=city,
        region=geo.region,
        referrer=data.referrer,
        referrer_category=referrer_info["category"],
        referrer_source=referrer_info["source"],
        entry_page=data.page,
        converted=False,
        bounced=False,
        is_returning=data.is_returning,
        **utm_values,
    )

    # Last write wins for descriptive fields; values we could not determine keep the stored one
    updates = {
        "last_seen": ctx.now,
        "page_views": UserSession.page_views + 1,
        "referrer_category": referrer_info["category"],
        "referrer_source": referrer_info["source"],
    }
    latest = {
        "device": device,
        "browser": browser,
        "os": os_name,
        "country": country,
        "city": city,
        "region": geo.region,
    }
    latest.update(utm_values)
    updates.update({k: v for k, v in latest.items() if v})

    db.execute(stmt.on_conflict_do_update(index_elements=["session_id"], set_=updates))

    db.execute(
        dialect_insert(db, SessionPage)
        .values(session_id=data.session_id, page=data.page, first_visited=ctx.now)
        .on_conflict_do_nothing(index_elements=["session_id", "page"])
    )
    db.commit()


def record_page_exit(db: Session, data: PageExitData, ctx: IngestionContext) -> None:
    # Mark the newest still-open view of this page
    open_view = aliased(PageView)
    newest_open_id = (
        select(open_view.id)
        .where(
            open_view.session_id == data.session_id,
            open_view.page == data.page,
            open_view.exit_page.is_(False),
        )
        .order_by(open_view.timestamp.desc(), open_view.id.desc())
        .limit(1)
        .scalar_subquery()
    )
    db.execute(
        update(PageView)
        .where(PageView.id == newest_open_id)
        .values(exit_page=True, time_on_page=data.time_on_page)
        .execution_options(synchronize_session=False)
    )

    session = db.query(UserSession).filter(UserSession.session_id == data.session_id).first()
    if not session:
        # Exit without a prior pageview; nothing to aggregate
        db.commit()
        return

    duration = max(0, int((ctx.now - session.first_seen).total_seconds() * 1000))
    bounced = session.page_views <= 1 and duration < BOUNCE_THRESHOLD_MS
    db.execute(
        update(UserSession)
        .where(UserSession.session_id == data.session_id)
        .values(exit_page=data.page, session_duration=duration, bounced=bounced)
        .execution_options(synchronize_session=False)
    )
    db.commit()


def record_scroll(db: Session, data: ScrollData, ctx: IngestionContext) -> None:
    reported_max = max(data.scroll_depth, data.max_scroll_depth or 0)
    stmt = dialect_insert(db, ScrollEvent).values(
        session_id=data.session_id,
        page=data.page,
        scroll_depth=data.scroll_depth,
        max_scroll_depth=reported_max,
        timestamp=ctx.now,
    )
    stored_max = func.coalesce(ScrollEvent.max_scroll_depth, 0)
    stmt = stmt.on_conflict_do_update(
        index_elements=["session_id", "page"],
        set_={
            "scroll_depth": stmt.excluded.scroll_depth,
            "timestamp": stmt.excluded.timestamp,
            "max_scroll_depth": case(
                (stmt.excluded.max_scroll_depth > stored_max, stmt.excluded.max_scroll_depth),
                else_=stored_max,
            ),
        },
    )
    db.execute(stmt)
    db.commit()


def record_click(db: Session, data: ClickData, ctx: IngestionContext) -> None:
    db.add(ClickEvent(
        session_id=data.session_id,
        element_id=data.element_id,
        element_type=data.element_type,
        element_text=data.element_text,
        page=data.page,
        x_position=data.x_position,
        y_position=data.y_position,
        timestamp=ctx.now,
    ))
    db.commit()


def record_form_interaction(db: Session, data: FormInteractionData, ctx: IngestionContext) -> None:
    db.add(FormInteraction(
        session_id=data.session_id,
        form_id=data.form_id,
        field_name=data.field_name,
        action=data.action.value,
        time_spent=data.time_spent,
        page=data.page,
        timestamp=ctx.now,
    ))
    db.commit()


def record_form_submission(db: Session, data: FormSubmissionData, ctx: IngestionContext) -> None:
    db.add(FormSubmission(
        session_id=data.session_id,
        form_type=data.form_type,
        page=data.page,
        success=data.success,
        time_taken=data.time_taken,
        field_errors=data.field_errors,
        timestamp=ctx.now,
    ))
    if data.success:
        # Converted only ever flips to true; missing session is a no-op
        db.execute(
            update(UserSession)
            .where(UserSession.session_id == data.session_id)
            .values(converted=True)
            .execution_options(synchronize_session=False)
        )
    db.commit()


EVENT_HANDLERS: Dict[EventType, Callable[[Session, Any, IngestionContext], None]] = {
    EventType.PAGEVIEW: record_pageview,
    EventType.PAGE_EXIT: record_page_exit,
    EventType.SCROLL: record_scroll,
    EventType.CLICK: record_click,
    EventType.FORM_INTERACTION: record_form_interaction,
    EventType.FORM_SUBMISSION: record_form_submission,
}


def ingest_event(db: Session, kind: EventType, payload: BaseModel, ctx: IngestionContext) -> None:
    EVENT_HANDLERS[kind](db, payload, ctx)
    logger.debug("Recorded %s event for session %s", kind.value, payload.session_id)


def record_event_error(
    db: Session,
    event_type: Optional[str],
    payload: Any,
    reason: str,
    received_at: Optional[datetime] = None,
) -> None:
    """Persist a failed event for later inspection. Never raises."""
    session_id = payload.get("sessionId") if isinstance(payload, dict) else None
    try:
        db.add(EventError(
            event_type=event_type,
            session_id=str(session_id) if session_id is not None else None,
            payload=payload if isinstance(payload, (dict, list)) else None,
            reason=reason,
            received_at=received_at or datetime.utcnow(),
        ))
        db.commit()
    except Exception:
        logger.exception("Failed to record event error for %s event", event_type)
        db.rollback()
