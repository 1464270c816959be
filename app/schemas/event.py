from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any
import enum


class EventType(str, enum.Enum):
    PAGEVIEW = "pageview"
    PAGE_EXIT = "page_exit"
    SCROLL = "scroll"
    CLICK = "click"
    FORM_INTERACTION = "form_interaction"
    FORM_SUBMISSION = "form_submission"


class FormAction(str, enum.Enum):
    FOCUS = "focus"
    BLUR = "blur"
    CHANGE = "change"
    ERROR = "error"


class TrackingData(BaseModel):
    """Fields shared by every tracking payload. Wire names are camelCase."""
    session_id: str = Field(..., min_length=1, max_length=128)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class PageViewData(TrackingData):
    page: str = Field(..., min_length=1)
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    screen_resolution: Optional[str] = None
    # Client-supplied location, used only where the geo lookup comes back empty
    country: Optional[str] = None
    city: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    entry_page: bool = False
    is_returning: bool = False


class PageExitData(TrackingData):
    page: str = Field(..., min_length=1)
    time_on_page: Optional[int] = Field(None, ge=0)  # Milliseconds


class ScrollData(TrackingData):
    page: str = Field(..., min_length=1)
    scroll_depth: float = Field(..., ge=0, le=100)
    max_scroll_depth: Optional[float] = Field(None, ge=0, le=100)


class ClickData(TrackingData):
    page: Optional[str] = None
    element_id: Optional[str] = None
    element_type: Optional[str] = None
    element_text: Optional[str] = None
    x_position: Optional[float] = None
    y_position: Optional[float] = None


class FormInteractionData(TrackingData):
    form_id: Optional[str] = None
    field_name: Optional[str] = None
    action: FormAction
    time_spent: Optional[int] = Field(None, ge=0)
    page: Optional[str] = None


class FormSubmissionData(TrackingData):
    form_type: Optional[str] = None
    page: Optional[str] = None
    success: bool = False
    time_taken: Optional[int] = Field(None, ge=0)
    field_errors: Optional[List[Any]] = None


# Closed mapping from event kind to the payload it carries
EVENT_PAYLOADS = {
    EventType.PAGEVIEW: PageViewData,
    EventType.PAGE_EXIT: PageExitData,
    EventType.SCROLL: ScrollData,
    EventType.CLICK: ClickData,
    EventType.FORM_INTERACTION: FormInteractionData,
    EventType.FORM_SUBMISSION: FormSubmissionData,
}


class TrackResponse(BaseModel):
    success: bool = True
