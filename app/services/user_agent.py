"""
Device, browser and OS detection by user-agent substring matching.

Shared by the tracking client and the ingestion fallback. No full UA
parsing: anything unmatched is "unknown".
"""
from typing import Optional

UNKNOWN = "unknown"

MOBILE_MAX_WIDTH = 768
TABLET_MAX_WIDTH = 1024

# (substrings, name), checked in order; Chromium forks must precede Chrome
_BROWSERS = [
    (("edg/", "edge/", "edga/", "edgios/"), "Edge"),
    (("opr/", "opera"), "Opera"),
    (("samsungbrowser",), "Samsung Internet"),
    (("firefox/", "fxios/"), "Firefox"),
    (("chrome/", "crios/", "chromium/"), "Chrome"),
    (("safari/",), "Safari"),
    (("msie ", "trident/"), "Internet Explorer"),
]

# iOS before macOS (iPad UAs mention Mac OS X), Android before Linux
_OPERATING_SYSTEMS = [
    (("windows",), "Windows"),
    (("iphone", "ipad", "ipod"), "iOS"),
    (("android",), "Android"),
    (("cros",), "Chrome OS"),
    (("mac os x", "macintosh"), "macOS"),
    (("linux",), "Linux"),
]


def get_device_type(viewport_width: Optional[int]) -> str:
    """Device bucket by viewport width in CSS pixels."""
    if viewport_width is None:
        return "desktop"
    if viewport_width < MOBILE_MAX_WIDTH:
        return "mobile"
    if viewport_width < TABLET_MAX_WIDTH:
        return "tablet"
    return "desktop"


def _match(user_agent: Optional[str], table) -> str:
    ua = (user_agent or "").lower()
    if not ua:
        return UNKNOWN
    for needles, name in table:
        if any(n in ua for n in needles):
            return name
    return UNKNOWN


def get_browser(user_agent: Optional[str]) -> str:
    return _match(user_agent, _BROWSERS)


def get_os(user_agent: Optional[str]) -> str:
    return _match(user_agent, _OPERATING_SYSTEMS)


def device_from_user_agent(user_agent: Optional[str]) -> Optional[str]:
    """Best guess when no viewport width is available (server side)."""
    if not user_agent:
        return None
    ua = user_agent.lower()
    if "ipad" in ua or "tablet" in ua or ("android" in ua and "mobile" not in ua):
        return "tablet"
    if "mobile" in ua or "iphone" in ua or "android" in ua:
        return "mobile"
    return "desktop"
