"""
Admin dashboard aggregations over a rolling window of days.

Every rate and average guards its denominator: an empty window reports
zeros, never errors. Durations are stored in milliseconds and reported in
whole seconds.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from itertools import groupby
from typing import List, Optional

from sqlalchemy import func, case, desc
from sqlalchemy.orm import Session

from app.models.interaction import ClickEvent, ScrollEvent, FormInteraction, FormSubmission
from app.models.page_view import PageView
from app.models.session import UserSession, SessionPage
from app.schemas.analytics import (
    BasicAnalyticsReport,
    BasicSummary,
    BrowserCount,
    CityCount,
    ClickedElement,
    CountryCount,
    DailyViews,
    DailyVisitors,
    EnhancedAnalyticsReport,
    EnhancedSummary,
    FormAbandonment,
    FormAnalytics,
    FormSubmissionStats,
    OsCount,
    PageCount,
    PageViewsByPage,
    RecentActivity,
    RecentConversion,
    ReferrerCount,
    ScrollDepthStats,
    UserFlow,
    UtmCampaignStats,
    UtmSourceStats,
)

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_DAYS = 7
TOP_N = 10
RECENT_ACTIVITY_LIMIT = 20
RECENT_CONVERSIONS_LIMIT = 5
REALTIME_WINDOW = timedelta(minutes=5)
FLOW_DEPTH = 5


def rate(part: Optional[float], whole: Optional[float]) -> float:
    """Percentage rounded to 2 decimals; 0 when the denominator is empty."""
    if not whole:
        return 0.0
    return round((part or 0) / whole * 100, 2)


def ms_to_seconds(value) -> int:
    if value is None:
        return 0
    return int(round(float(value) / 1000))


def _converted_count():
    return func.sum(case((UserSession.converted.is_(True), 1), else_=0))


def _period_start(now: datetime, period_days: int) -> datetime:
    return now - timedelta(days=period_days)


def _count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


# Summaries

def _basic_summary(db: Session, start: datetime) -> BasicSummary:
    total_sessions = _count(db, UserSession.id, UserSession.first_seen >= start)
    conversions = _count(
        db, UserSession.id, UserSession.first_seen >= start, UserSession.converted.is_(True)
    )
    avg_pages = db.query(func.avg(UserSession.page_views)).filter(
        UserSession.first_seen >= start
    ).scalar()

    return BasicSummary(
        total_page_views=_count(db, PageView.id, PageView.timestamp >= start),
        total_sessions=total_sessions,
        total_clicks=_count(db, ClickEvent.id, ClickEvent.timestamp >= start),
        total_form_submissions=_count(
            db, FormSubmission.id, FormSubmission.timestamp >= start, FormSubmission.success.is_(True)
        ),
        conversions=conversions,
        conversion_rate=rate(conversions, total_sessions),
        avg_pages_per_session=round(float(avg_pages), 2) if avg_pages is not None else 0.0,
    )


def _enhanced_summary(db: Session, start: datetime, now: datetime) -> EnhancedSummary:
    basic = _basic_summary(db, start)
    bounced = _count(db, UserSession.id, UserSession.first_seen >= start, UserSession.bounced.is_(True))
    returning = _count(
        db, UserSession.id, UserSession.first_seen >= start, UserSession.is_returning.is_(True)
    )
    avg_duration = db.query(func.avg(UserSession.session_duration)).filter(
        UserSession.first_seen >= start,
        UserSession.session_duration.isnot(None),
    ).scalar()
    active = db.query(func.count(func.distinct(PageView.session_id))).filter(
        PageView.timestamp >= now - REALTIME_WINDOW
    ).scalar() or 0

    return EnhancedSummary(
        **basic.model_dump(),
        bounce_rate=rate(bounced, basic.total_sessions),
        avg_session_duration=ms_to_seconds(avg_duration),
        returning_visitors=returning,
        new_visitors=basic.total_sessions - returning,
        active_visitors=active,
    )


# Breakdowns

def page_views_by_page(db: Session, start: datetime, with_time: bool = True) -> List[PageViewsByPage]:
    views = func.count(PageView.id).label("views")
    rows = (
        db.query(PageView.page, views, func.avg(PageView.time_on_page))
        .filter(PageView.timestamp >= start)
        .group_by(PageView.page)
        .order_by(desc("views"), PageView.page)
        .limit(TOP_N)
        .all()
    )
    return [
        PageViewsByPage(
            page=page,
            views=count,
            avg_time_on_page=ms_to_seconds(avg_time) if with_time else None,
        )
        for page, count, avg_time in rows
    ]


def _session_page_counts(db: Session, start: datetime, column) -> List[PageCount]:
    count = func.count(UserSession.id).label("count")
    rows = (
        db.query(column, count)
        .filter(UserSession.first_seen >= start, column.isnot(None))
        .group_by(column)
        .order_by(desc("count"), column)
        .limit(TOP_N)
        .all()
    )
    return [PageCount(page=page, count=n) for page, n in rows]


def entry_pages(db: Session, start: datetime) -> List[PageCount]:
    return _session_page_counts(db, start, UserSession.entry_page)


def exit_pages(db: Session, start: datetime) -> List[PageCount]:
    return _session_page_counts(db, start, UserSession.exit_page)


def top_clicked_elements(db: Session, start: datetime) -> List[ClickedElement]:
    clicks = func.count(ClickEvent.id).label("clicks")
    rows = (
        db.query(ClickEvent.element_id, ClickEvent.element_type, func.max(ClickEvent.element_text), clicks)
        .filter(ClickEvent.timestamp >= start)
        .group_by(ClickEvent.element_id, ClickEvent.element_type)
        .order_by(desc("clicks"), ClickEvent.element_id)
        .limit(TOP_N)
        .all()
    )
    return [
        ClickedElement(element_id=element_id, element_type=element_type, element_text=text, clicks=n)
        for element_id, element_type, text, n in rows
    ]


def device_breakdown(db: Session, start: datetime) -> dict:
    rows = (
        db.query(UserSession.device, func.count(UserSession.id))
        .filter(UserSession.first_seen >= start)
        .group_by(UserSession.device)
        .all()
    )
    breakdown = {}
    for device, n in rows:
        key = device or "unknown"
        breakdown[key] = breakdown.get(key, 0) + n
    return breakdown


def _session_counts(db: Session, start: datetime, *columns):
    count = func.count(UserSession.id).label("visitors")
    return (
        db.query(*columns, count)
        .filter(UserSession.first_seen >= start, columns[0].isnot(None))
        .group_by(*columns)
        .order_by(desc("visitors"), *columns)
        .limit(TOP_N)
        .all()
    )


def browser_breakdown(db: Session, start: datetime) -> List[BrowserCount]:
    return [BrowserCount(browser=b, count=n) for b, n in _session_counts(db, start, UserSession.browser)]


def os_breakdown(db: Session, start: datetime) -> List[OsCount]:
    return [OsCount(os=o, count=n) for o, n in _session_counts(db, start, UserSession.os)]


def country_breakdown(db: Session, start: datetime) -> List[CountryCount]:
    return [
        CountryCount(country=c, visitors=n)
        for c, n in _session_counts(db, start, UserSession.country)
    ]


def city_breakdown(db: Session, start: datetime) -> List[CityCount]:
    return [
        CityCount(city=city, country=country, visitors=n)
        for city, country, n in _session_counts(db, start, UserSession.city, UserSession.country)
    ]


def _utm_stats(db: Session, start: datetime, column):
    visitors = func.count(UserSession.id).label("visitors")
    return (
        db.query(column, visitors, _converted_count())
        .filter(UserSession.first_seen >= start, column.isnot(None))
        .group_by(column)
        .order_by(desc("visitors"), column)
        .limit(TOP_N)
        .all()
    )


def utm_sources(db: Session, start: datetime) -> List[UtmSourceStats]:
    return [
        UtmSourceStats(
            source=source,
            visitors=n,
            conversions=int(converted or 0),
            conversion_rate=rate(converted, n),
        )
        for source, n, converted in _utm_stats(db, start, UserSession.utm_source)
    ]


def utm_campaigns(db: Session, start: datetime) -> List[UtmCampaignStats]:
    return [
        UtmCampaignStats(
            campaign=campaign,
            visitors=n,
            conversions=int(converted or 0),
            conversion_rate=rate(converted, n),
        )
        for campaign, n, converted in _utm_stats(db, start, UserSession.utm_campaign)
    ]


def daily_stats(db: Session, start: datetime) -> List[DailyViews]:
    day = func.date(PageView.timestamp).label("day")
    rows = (
        db.query(day, func.count(PageView.id))
        .filter(PageView.timestamp >= start)
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [DailyViews(date=str(d), views=n) for d, n in rows]


def daily_visitors(db: Session, start: datetime) -> List[DailyVisitors]:
    day = func.date(UserSession.first_seen).label("day")
    rows = (
        db.query(day, func.count(UserSession.id), _converted_count())
        .filter(UserSession.first_seen >= start)
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [DailyVisitors(date=str(d), visitors=n, conversions=int(c or 0)) for d, n, c in rows]


def top_referrers(db: Session, start: datetime) -> List[ReferrerCount]:
    count = func.count(UserSession.id).label("count")
    rows = (
        db.query(UserSession.referrer, count, _converted_count())
        .filter(
            UserSession.first_seen >= start,
            UserSession.referrer.isnot(None),
            UserSession.referrer != "",
        )
        .group_by(UserSession.referrer)
        .order_by(desc("count"), UserSession.referrer)
        .limit(TOP_N)
        .all()
    )
    return [ReferrerCount(referrer=r, count=n, conversions=int(c or 0)) for r, n, c in rows]


def user_flows(db: Session, start: datetime) -> List[UserFlow]:
    """Most common first-five-page paths across sessions in the window."""
    rows = (
        db.query(SessionPage.session_id, SessionPage.page)
        .join(UserSession, UserSession.session_id == SessionPage.session_id)
        .filter(UserSession.first_seen >= start)
        .order_by(SessionPage.session_id, SessionPage.id)
        .all()
    )
    paths = Counter()
    for _, pages in groupby(rows, key=lambda r: r[0]):
        path = tuple(p for _, p in pages)[:FLOW_DEPTH]
        if path:
            paths[path] += 1
    return [UserFlow(path=list(path), count=n) for path, n in paths.most_common(TOP_N)]


def scroll_depth(db: Session, start: datetime) -> List[ScrollDepthStats]:
    sessions = func.count(ScrollEvent.id).label("sessions")
    rows = (
        db.query(ScrollEvent.page, func.avg(ScrollEvent.max_scroll_depth), sessions)
        .filter(ScrollEvent.timestamp >= start)
        .group_by(ScrollEvent.page)
        .order_by(desc("sessions"), ScrollEvent.page)
        .limit(TOP_N)
        .all()
    )
    return [
        ScrollDepthStats(page=page, avg_max_scroll=int(round(float(avg or 0))), sessions=n)
        for page, avg, n in rows
    ]


def form_analytics(db: Session, start: datetime) -> FormAnalytics:
    interactions = func.count(FormInteraction.id).label("interactions")
    abandonment_rows = (
        db.query(FormInteraction.form_id, interactions, func.count(func.distinct(FormInteraction.session_id)))
        .filter(FormInteraction.timestamp >= start)
        .group_by(FormInteraction.form_id)
        .order_by(desc("interactions"), FormInteraction.form_id)
        .all()
    )

    total = func.count(FormSubmission.id).label("total")
    successful = func.sum(case((FormSubmission.success.is_(True), 1), else_=0))
    submission_rows = (
        db.query(FormSubmission.form_type, total, successful, func.avg(FormSubmission.time_taken))
        .filter(FormSubmission.timestamp >= start)
        .group_by(FormSubmission.form_type)
        .order_by(desc("total"), FormSubmission.form_type)
        .all()
    )

    return FormAnalytics(
        abandonments=[
            FormAbandonment(form_id=form_id, interactions=n, unique_sessions=unique)
            for form_id, n, unique in abandonment_rows
        ],
        submissions=[
            FormSubmissionStats(
                form_type=form_type,
                total=n,
                successful=int(ok or 0),
                success_rate=rate(ok, n),
                avg_time_taken=ms_to_seconds(avg_time),
            )
            for form_type, n, ok, avg_time in submission_rows
        ],
    )


def recent_conversions(db: Session, now: datetime) -> List[RecentConversion]:
    rows = (
        db.query(FormSubmission)
        .filter(FormSubmission.success.is_(True), FormSubmission.timestamp >= now - REALTIME_WINDOW)
        .order_by(FormSubmission.timestamp.desc(), FormSubmission.id.desc())
        .limit(RECENT_CONVERSIONS_LIMIT)
        .all()
    )
    return [RecentConversion(form_type=r.form_type, timestamp=r.timestamp) for r in rows]


def recent_activity(db: Session, start: datetime) -> List[RecentActivity]:
    rows = (
        db.query(PageView)
        .filter(PageView.timestamp >= start)
        .order_by(PageView.timestamp.desc(), PageView.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return [
        RecentActivity(
            session_id=r.session_id,
            page=r.page,
            timestamp=r.timestamp,
            device=r.device,
            country=r.country,
            city=r.city,
            browser=r.browser,
        )
        for r in rows
    ]


# Bundles

def build_basic_report(db: Session, period_days: int, now: datetime) -> BasicAnalyticsReport:
    start = _period_start(now, period_days)
    return BasicAnalyticsReport(
        summary=_basic_summary(db, start),
        page_views_by_page=page_views_by_page(db, start, with_time=False),
        top_clicked_elements=top_clicked_elements(db, start),
        device_breakdown=device_breakdown(db, start),
        daily_stats=daily_stats(db, start),
        daily_visitors=daily_visitors(db, start),
        top_referrers=top_referrers(db, start),
        recent_activity=recent_activity(db, start),
    )


def build_enhanced_report(db: Session, period_days: int, now: datetime) -> EnhancedAnalyticsReport:
    """Full dashboard bundle for the last `period_days` days ending at `now`."""
    start = _period_start(now, period_days)
    logger.debug("Building enhanced analytics report from %s", start.isoformat())
    return EnhancedAnalyticsReport(
        summary=_enhanced_summary(db, start, now),
        page_views_by_page=page_views_by_page(db, start),
        entry_pages=entry_pages(db, start),
        exit_pages=exit_pages(db, start),
        top_clicked_elements=top_clicked_elements(db, start),
        device_breakdown=device_breakdown(db, start),
        browser_breakdown=browser_breakdown(db, start),
        os_breakdown=os_breakdown(db, start),
        country_breakdown=country_breakdown(db, start),
        city_breakdown=city_breakdown(db, start),
        utm_sources=utm_sources(db, start),
        utm_campaigns=utm_campaigns(db, start),
        daily_stats=daily_stats(db, start),
        daily_visitors=daily_visitors(db, start),
        top_referrers=top_referrers(db, start),
        user_flows=user_flows(db, start),
        scroll_depth=scroll_depth(db, start),
        form_analytics=form_analytics(db, start),
        recent_conversions=recent_conversions(db, now),
        recent_activity=recent_activity(db, start),
    )
