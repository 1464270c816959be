from app.tracking.client import Tracker, PageLifetime, HttpxTransport, get_utm_params
from app.tracking.elements import Element, is_trackable, element_type, resolve_element_id

__all__ = [
    "Tracker", "PageLifetime", "HttpxTransport", "get_utm_params",
    "Element", "is_trackable", "element_type", "resolve_element_id",
]
