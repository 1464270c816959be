from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict
from datetime import datetime


class ReportModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# Summary
class BasicSummary(ReportModel):
    total_page_views: int
    total_sessions: int
    total_clicks: int
    total_form_submissions: int
    conversions: int
    conversion_rate: float
    avg_pages_per_session: float


class EnhancedSummary(BasicSummary):
    bounce_rate: float
    avg_session_duration: int  # Seconds
    returning_visitors: int
    new_visitors: int
    active_visitors: int


# Breakdowns
class PageViewsByPage(ReportModel):
    page: Optional[str]
    views: int
    avg_time_on_page: Optional[int] = None  # Seconds


class PageCount(ReportModel):
    page: Optional[str]
    count: int


class ClickedElement(ReportModel):
    element_id: Optional[str]
    element_type: Optional[str]
    element_text: Optional[str] = None
    clicks: int


class BrowserCount(ReportModel):
    browser: Optional[str]
    count: int


class OsCount(ReportModel):
    os: Optional[str]
    count: int


class CountryCount(ReportModel):
    country: Optional[str]
    visitors: int


class CityCount(ReportModel):
    city: Optional[str]
    country: Optional[str]
    visitors: int


class UtmSourceStats(ReportModel):
    source: Optional[str]
    visitors: int
    conversions: int
    conversion_rate: float


class UtmCampaignStats(ReportModel):
    campaign: Optional[str]
    visitors: int
    conversions: int
    conversion_rate: float


class DailyViews(ReportModel):
    date: str
    views: int


class DailyVisitors(ReportModel):
    date: str
    visitors: int
    conversions: Optional[int] = None


class ReferrerCount(ReportModel):
    referrer: Optional[str]
    count: int
    conversions: Optional[int] = None


class UserFlow(ReportModel):
    path: List[str]
    count: int


class ScrollDepthStats(ReportModel):
    page: Optional[str]
    avg_max_scroll: int
    sessions: int


class FormAbandonment(ReportModel):
    form_id: Optional[str]
    interactions: int
    unique_sessions: int


class FormSubmissionStats(ReportModel):
    form_type: Optional[str]
    total: int
    successful: int
    success_rate: float
    avg_time_taken: int  # Seconds


class FormAnalytics(ReportModel):
    abandonments: List[FormAbandonment]
    submissions: List[FormSubmissionStats]


class RecentConversion(ReportModel):
    form_type: Optional[str]
    timestamp: datetime


class RecentActivity(ReportModel):
    session_id: str
    page: Optional[str]
    timestamp: datetime
    device: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    browser: Optional[str] = None


# Bundles
class BasicAnalyticsReport(ReportModel):
    summary: BasicSummary
    page_views_by_page: List[PageViewsByPage]
    top_clicked_elements: List[ClickedElement]
    device_breakdown: Dict[str, int]
    daily_stats: List[DailyViews]
    daily_visitors: List[DailyVisitors]
    top_referrers: List[ReferrerCount]
    recent_activity: List[RecentActivity]


class EnhancedAnalyticsReport(ReportModel):
    summary: EnhancedSummary
    page_views_by_page: List[PageViewsByPage]
    entry_pages: List[PageCount]
    exit_pages: List[PageCount]
    top_clicked_elements: List[ClickedElement]
    device_breakdown: Dict[str, int]
    browser_breakdown: List[BrowserCount]
    os_breakdown: List[OsCount]
    country_breakdown: List[CountryCount]
    city_breakdown: List[CityCount]
    utm_sources: List[UtmSourceStats]
    utm_campaigns: List[UtmCampaignStats]
    daily_stats: List[DailyViews]
    daily_visitors: List[DailyVisitors]
    top_referrers: List[ReferrerCount]
    user_flows: List[UserFlow]
    scroll_depth: List[ScrollDepthStats]
    form_analytics: FormAnalytics
    recent_conversions: List[RecentConversion]
    recent_activity: List[RecentActivity]
