from app.models.page_view import PageView
from app.models.interaction import ClickEvent, ScrollEvent, FormInteraction, FormSubmission
from app.models.session import UserSession, SessionPage
from app.models.lead import Lead, LeadStatus
from app.models.admin import Admin
from app.models.event_error import EventError

__all__ = [
    "PageView", "ClickEvent", "ScrollEvent", "FormInteraction", "FormSubmission",
    "UserSession", "SessionPage",
    "Lead", "LeadStatus", "Admin", "EventError",
]
