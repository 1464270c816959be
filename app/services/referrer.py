"""
Referrer classification and search keyword extraction.

Pure functions: no I/O, never raise on bad input.
"""
import logging
import re
from typing import Optional, Dict
from urllib.parse import urlparse, parse_qs

logger = logging.getLogger(__name__)

DIRECT = "direct"
SEARCH = "search"
SOCIAL = "social"
EMAIL = "email"
REFERRAL = "referral"
CAMPAIGN = "campaign"
INTERNAL = "internal"

# Evaluated in order against the referrer hostname; first match wins.
SEARCH_ENGINES = [
    (re.compile(r"google\.", re.I), "Google"),
    (re.compile(r"bing\.", re.I), "Bing"),
    (re.compile(r"yahoo\.", re.I), "Yahoo"),
    (re.compile(r"duckduckgo\.", re.I), "DuckDuckGo"),
    (re.compile(r"baidu\.", re.I), "Baidu"),
    (re.compile(r"yandex\.", re.I), "Yandex"),
    (re.compile(r"(^|\.)ask\.", re.I), "Ask"),
    (re.compile(r"ecosia\.", re.I), "Ecosia"),
]

SOCIAL_PLATFORMS = [
    (re.compile(r"facebook\.|(^|\.)fb\.", re.I), "Facebook"),
    (re.compile(r"instagram\.", re.I), "Instagram"),
    (re.compile(r"twitter\.|(^|\.)x\.com$|(^|\.)t\.co$", re.I), "Twitter/X"),
    (re.compile(r"linkedin\.|(^|\.)lnkd\.in$", re.I), "LinkedIn"),
    (re.compile(r"pinterest\.", re.I), "Pinterest"),
    (re.compile(r"reddit\.", re.I), "Reddit"),
    (re.compile(r"tiktok\.", re.I), "TikTok"),
    (re.compile(r"youtube\.|(^|\.)youtu\.be$", re.I), "YouTube"),
    (re.compile(r"snapchat\.", re.I), "Snapchat"),
    (re.compile(r"whatsapp\.", re.I), "WhatsApp"),
    (re.compile(r"telegram\.|(^|\.)t\.me$", re.I), "Telegram"),
    (re.compile(r"discord\.", re.I), "Discord"),
    (re.compile(r"twitch\.", re.I), "Twitch"),
]

EMAIL_PROVIDERS = [
    re.compile(r"(^|\.)mail\.", re.I),
    re.compile(r"gmail\.", re.I),
    re.compile(r"outlook\.", re.I),
    re.compile(r"yahoo.*mail", re.I),
    re.compile(r"protonmail\.|proton\.me", re.I),
]

# Query parameter carrying the search terms, per engine
SEARCH_QUERY_PARAMS = [
    (re.compile(r"google\.", re.I), "q"),
    (re.compile(r"bing\.", re.I), "q"),
    (re.compile(r"yahoo\.", re.I), "p"),
    (re.compile(r"duckduckgo\.", re.I), "q"),
]


def _strip_www(hostname: str) -> str:
    hostname = hostname.lower()
    return hostname[4:] if hostname.startswith("www.") else hostname


def _hostname(referrer: str) -> Optional[str]:
    try:
        hostname = urlparse(referrer.strip()).hostname
    except ValueError:
        return None
    return _strip_www(hostname) if hostname else None


def categorize_referrer(
    referrer: Optional[str],
    utm_source: Optional[str] = None,
    site_hostname: Optional[str] = None,
) -> Dict[str, str]:
    """
    Classify a visit's traffic source.

    Returns {"category", "source"} plus "domain" when a hostname could be parsed.
    A UTM source always wins over URL-based classification.
    """
    if not referrer:
        return {"category": DIRECT, "source": "Direct"}

    if utm_source:
        return {"category": CAMPAIGN, "source": utm_source}

    domain = _hostname(referrer)
    if not domain:
        logger.debug("Unparseable referrer %r classified as referral", referrer)
        return {"category": REFERRAL, "source": referrer}

    if site_hostname and domain == _strip_www(site_hostname):
        return {"category": INTERNAL, "source": "Internal", "domain": domain}

    for pattern, name in SEARCH_ENGINES:
        if pattern.search(domain):
            return {"category": SEARCH, "source": name, "domain": domain}

    for pattern, name in SOCIAL_PLATFORMS:
        if pattern.search(domain):
            return {"category": SOCIAL, "source": name, "domain": domain}

    for pattern in EMAIL_PROVIDERS:
        if pattern.search(domain):
            return {"category": EMAIL, "source": "Email", "domain": domain}

    return {"category": REFERRAL, "source": domain, "domain": domain}


def extract_search_keywords(referrer: Optional[str]) -> Optional[str]:
    """Search terms from a known search engine referrer, else None."""
    if not referrer:
        return None
    try:
        parsed = urlparse(referrer.strip())
    except ValueError:
        return None
    if not parsed.hostname:
        return None

    domain = _strip_www(parsed.hostname)
    for pattern, param in SEARCH_QUERY_PARAMS:
        if pattern.search(domain):
            values = parse_qs(parsed.query).get(param)
            return values[0] if values and values[0] else None
    return None

