"""
Tracking client: emits analytics events to the ingestion endpoint.

Every call is fire-and-forget. Delivery errors are logged at DEBUG and
swallowed so instrumentation never breaks the host; nothing is retried.
"""
import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, MutableMapping, Optional
from urllib.parse import urlparse, parse_qs

import httpx

from app.services.user_agent import get_browser, get_device_type, get_os
from app.tracking.elements import (
    Element,
    closest_trackable,
    element_text,
    element_type,
    resolve_element_id,
)

logger = logging.getLogger(__name__)

SESSION_KEY = "analytics_session_id"
ENTRY_TRACKED_KEY = "analytics_entry_tracked"
VISITOR_KEY = "analytics_visitor_id"

SCROLL_DEBOUNCE_SECONDS = 1.0

UTM_PARAMS = {
    "utm_source": "utmSource",
    "utm_medium": "utmMedium",
    "utm_campaign": "utmCampaign",
    "utm_term": "utmTerm",
    "utm_content": "utmContent",
}


def get_utm_params(url: Optional[str]) -> Dict[str, str]:
    """UTM fields present in a URL's query string, keyed by wire name."""
    if not url:
        return {}
    try:
        query = parse_qs(urlparse(url).query)
    except ValueError:
        return {}
    return {wire: query[param][0] for param, wire in UTM_PARAMS.items() if query.get(param)}


class HttpxTransport:
    """POSTs event envelopes with httpx."""

    def __init__(self, endpoint: str, client: Optional[httpx.Client] = None, timeout: float = 5.0):
        self.endpoint = endpoint
        self.client = client or httpx.Client(timeout=timeout)

    def send(self, envelope: Dict[str, Any]) -> None:
        response = self.client.post(self.endpoint, json=envelope)
        response.raise_for_status()

    def send_beacon(self, envelope: Dict[str, Any]) -> threading.Thread:
        """
        Send without waiting for the result.

        Runs on a non-daemon thread so interpreter shutdown still waits for
        the attempt, the way a browser completes a beacon after unload.
        """
        thread = threading.Thread(target=self._send_quietly, args=(envelope,), daemon=False)
        thread.start()
        return thread

    def _send_quietly(self, envelope: Dict[str, Any]) -> None:
        try:
            self.send(envelope)
        except Exception as e:
            logger.debug("Beacon delivery of %s failed: %s", envelope.get("eventType"), e)

    def close(self) -> None:
        self.client.close()


class PageLifetime:
    """
    State for a single page view: start time, running max scroll, exit flag
    and the pending scroll send. A new one is created per navigation.
    """

    def __init__(
        self,
        tracker: "Tracker",
        page: str,
        started_at: float,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.tracker = tracker
        self.page = page
        self.started_at = started_at
        self.max_scroll = 0
        self.exited = False
        self._pending_depth: Optional[int] = None
        self._timer = None
        self._timer_factory = timer_factory
        self._lock = threading.Lock()

    def on_scroll(self, scroll_top: float, document_height: float, viewport_height: float) -> None:
        """Record a scroll position; sends are debounced and only on a new maximum."""
        if self.exited:
            return
        scrollable = document_height - viewport_height
        if scrollable <= 0:
            depth = 100
        else:
            depth = int(round(min(max(scroll_top / scrollable, 0), 1) * 100))

        with self._lock:
            if depth <= self.max_scroll:
                return
            self.max_scroll = depth
            self._pending_depth = depth
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self._timer_factory(SCROLL_DEBOUNCE_SECONDS, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        """Send any pending scroll update now."""
        with self._lock:
            depth = self._pending_depth
            self._pending_depth = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if depth is None:
            return
        self.tracker.send("scroll", {
            "page": self.page,
            "scrollDepth": depth,
            "maxScrollDepth": self.max_scroll,
        })

    def exit(self) -> bool:
        """Fire the page exit once; later calls do nothing and return False."""
        with self._lock:
            if self.exited:
                return False
            self.exited = True
        self.flush()
        time_on_page = int((self.tracker.clock() - self.started_at) * 1000)
        self.tracker.beacon("page_exit", {"page": self.page, "timeOnPage": max(time_on_page, 0)})
        return True


class Tracker:
    """
    Client-side event emitter.

    `storage` is session scoped (one visit), `persistent_storage` survives
    across visits and only holds the returning-visitor marker.
    """

    def __init__(
        self,
        transport,
        storage: Optional[MutableMapping[str, str]] = None,
        persistent_storage: Optional[MutableMapping[str, str]] = None,
        user_agent: Optional[str] = None,
        viewport_width: Optional[int] = None,
        screen_resolution: Optional[str] = None,
        url: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.transport = transport
        self.storage = storage if storage is not None else {}
        self.persistent_storage = persistent_storage if persistent_storage is not None else {}
        self.user_agent = user_agent
        self.viewport_width = viewport_width
        self.screen_resolution = screen_resolution
        self.clock = clock
        self.timer_factory = timer_factory
        # UTM parameters are read once, from the landing URL
        self.utm_params = get_utm_params(url)
        self.current: Optional[PageLifetime] = None
        self._is_returning: Optional[bool] = None

    def get_session_id(self) -> str:
        session_id = self.storage.get(SESSION_KEY)
        if not session_id:
            session_id = str(uuid.uuid4())
            self.storage[SESSION_KEY] = session_id
        return session_id

    def is_returning(self) -> bool:
        if self._is_returning is None:
            self._is_returning = VISITOR_KEY in self.persistent_storage
            if not self._is_returning:
                self.persistent_storage[VISITOR_KEY] = str(uuid.uuid4())
        return self._is_returning

    def _envelope(self, event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"eventType": event_type, "data": {"sessionId": self.get_session_id(), **data}}

    def send(self, event_type: str, data: Dict[str, Any]) -> bool:
        try:
            self.transport.send(self._envelope(event_type, data))
            return True
        except Exception as e:
            logger.debug("Failed to track %s: %s", event_type, e)
            return False

    def beacon(self, event_type: str, data: Dict[str, Any]) -> None:
        try:
            self.transport.send_beacon(self._envelope(event_type, data))
        except Exception as e:
            logger.debug("Failed to queue %s beacon: %s", event_type, e)

    def track_page_view(self, page: str, referrer: Optional[str] = None) -> PageLifetime:
        entry_page = not self.storage.get(ENTRY_TRACKED_KEY)
        if entry_page:
            self.storage[ENTRY_TRACKED_KEY] = "true"

        data = {
            "page": page,
            "userAgent": self.user_agent,
            "referrer": referrer or "",
            "device": get_device_type(self.viewport_width),
            "browser": get_browser(self.user_agent),
            "os": get_os(self.user_agent),
            "screenResolution": self.screen_resolution,
            "entryPage": entry_page,
            "isReturning": self.is_returning(),
        }
        data.update(self.utm_params)
        self.send("pageview", data)
        return PageLifetime(self, page, self.clock(), timer_factory=self.timer_factory)

    def navigate(self, page: str, referrer: Optional[str] = None) -> PageLifetime:
        """Tear down the current page (firing its exit) and track the next one."""
        if self.current is not None:
            self.current.exit()
        self.current = self.track_page_view(page, referrer)
        return self.current

    def track_click(
        self,
        target: Element,
        page: Optional[str] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> Optional[str]:
        """Track a click on `target` or its nearest trackable ancestor; returns the element id."""
        element = closest_trackable(target)
        if element is None:
            return None
        element_id = resolve_element_id(element)
        self.send("click", {
            "elementId": element_id,
            "elementType": element_type(element),
            "elementText": element_text(element),
            "page": page or (self.current.page if self.current else None),
            "xPosition": x,
            "yPosition": y,
        })
        return element_id

    def track_form_interaction(
        self,
        form_id: str,
        field_name: str,
        action: str,
        time_spent: Optional[int] = None,
        page: Optional[str] = None,
    ) -> bool:
        return self.send("form_interaction", {
            "formId": form_id,
            "fieldName": field_name,
            "action": action,
            "timeSpent": time_spent,
            "page": page or (self.current.page if self.current else None),
        })

    def track_form_submission(
        self,
        form_type: str,
        success: bool,
        time_taken: Optional[int] = None,
        field_errors: Optional[List[Any]] = None,
        page: Optional[str] = None,
    ) -> bool:
        return self.send("form_submission", {
            "formType": form_type,
            "success": success,
            "timeTaken": time_taken,
            "fieldErrors": field_errors,
            "page": page or (self.current.page if self.current else None),
        })
