from app.schemas.event import EventType, EVENT_PAYLOADS, TrackResponse
from app.schemas.lead import Lead, LeadCreate, LeadList, LeadSubmitResponse
from app.schemas.admin import AdminLogin, Token
from app.schemas.analytics import BasicAnalyticsReport, EnhancedAnalyticsReport

__all__ = [
    "EventType", "EVENT_PAYLOADS", "TrackResponse",
    "Lead", "LeadCreate", "LeadList", "LeadSubmitResponse",
    "AdminLogin", "Token",
    "BasicAnalyticsReport", "EnhancedAnalyticsReport",
]
