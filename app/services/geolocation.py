"""
IP geolocation enrichment for pageviews.

Lookups are best-effort: every failure mode (provider down, rate limited,
private address, timeout) yields a result without location fields and the
pageview is still recorded.
"""
import ipaddress
import logging
import enum
from dataclasses import dataclass, field, asdict
from typing import Optional, Mapping

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

IPAPI_URL = "https://ipapi.co/{ip}/json/"
IP_API_URL = "http://ip-api.com/json/{ip}"

# Checked in order; the first non-empty header wins
CLIENT_IP_HEADERS = [
    "cf-connecting-ip",
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
]


class GeoLookupStatus(str, enum.Enum):
    OK = "ok"
    NO_DATA = "no_data"
    ERROR = "error"


@dataclass
class GeoLocation:
    country: Optional[str] = None
    country_code: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    ip: Optional[str] = None

    def is_empty(self) -> bool:
        return all(v is None for v in asdict(self).values())


@dataclass
class GeoLookupResult:
    status: GeoLookupStatus
    location: GeoLocation = field(default_factory=GeoLocation)
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == GeoLookupStatus.OK


def get_client_ip(headers: Mapping[str, str]) -> Optional[str]:
    """Originating client IP from proxy headers, or None."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for name in CLIENT_IP_HEADERS:
        value = lowered.get(name)
        if not value:
            continue
        if name == "x-forwarded-for":
            value = value.split(",")[0]
        value = value.strip()
        if value:
            return value
    return None


def is_private_ip(ip: str) -> bool:
    """True for loopback, private, link-local, reserved and unparseable addresses."""
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return True
    return (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_reserved
        or addr.is_unspecified
        or addr.is_multicast
    )


def _from_ipapi(data: dict) -> GeoLookupResult:
    if data.get("error"):
        return GeoLookupResult(GeoLookupStatus.ERROR, reason=data.get("reason") or "provider error")
    location = GeoLocation(
        country=data.get("country_name"),
        country_code=data.get("country_code"),
        city=data.get("city"),
        region=data.get("region"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=data.get("timezone"),
        ip=data.get("ip"),
    )
    return _result_for(location)


def _from_ip_api(data: dict) -> GeoLookupResult:
    if data.get("status") == "fail":
        message = data.get("message") or ""
        if message in ("private range", "reserved range"):
            return GeoLookupResult(
                GeoLookupStatus.OK,
                GeoLocation(country="Local", city="Development", ip=data.get("query")),
            )
        return GeoLookupResult(GeoLookupStatus.ERROR, reason=message or "provider error")
    location = GeoLocation(
        country=data.get("country"),
        country_code=data.get("countryCode"),
        city=data.get("city"),
        region=data.get("regionName"),
        latitude=data.get("lat"),
        longitude=data.get("lon"),
        timezone=data.get("timezone"),
        ip=data.get("query"),
    )
    return _result_for(location)


def _result_for(location: GeoLocation) -> GeoLookupResult:
    if location.is_empty():
        return GeoLookupResult(GeoLookupStatus.NO_DATA)
    return GeoLookupResult(GeoLookupStatus.OK, location)


PROVIDERS = {
    "ipapi": (IPAPI_URL, _from_ipapi),
    "ip-api": (IP_API_URL, _from_ip_api),
}


def lookup_geolocation(
    ip: Optional[str],
    client: Optional[httpx.Client] = None,
    provider: Optional[str] = None,
) -> GeoLookupResult:
    """
    Resolve an IP to a coarse location using a public lookup service.

    Never raises. Private or missing IPs short-circuit without a network call.
    Pass an httpx.Client to control the transport (tests use MockTransport).
    """
    if not settings.GEOLOCATION_ENABLED:
        return GeoLookupResult(GeoLookupStatus.NO_DATA, reason="disabled")
    if not ip or is_private_ip(ip):
        return GeoLookupResult(GeoLookupStatus.NO_DATA, reason="private or missing ip")

    provider = provider or settings.GEOLOCATION_PROVIDER
    if provider not in PROVIDERS:
        logger.warning("Unknown geolocation provider %r, skipping lookup", provider)
        return GeoLookupResult(GeoLookupStatus.ERROR, reason="unknown provider")
    url_template, parse = PROVIDERS[provider]
    url = url_template.format(ip=ip.strip())
    headers = {"User-Agent": settings.GEOLOCATION_USER_AGENT, "accept": "application/json"}

    try:
        if client is not None:
            response = client.get(url, headers=headers, timeout=settings.GEOLOCATION_TIMEOUT_SECONDS)
        else:
            response = httpx.get(url, headers=headers, timeout=settings.GEOLOCATION_TIMEOUT_SECONDS)

        if response.status_code != 200:
            logger.warning("Geolocation lookup for %s failed: HTTP %s", ip, response.status_code)
            return GeoLookupResult(GeoLookupStatus.ERROR, reason=f"HTTP {response.status_code}")

        data = response.json()
        if not isinstance(data, dict):
            return GeoLookupResult(GeoLookupStatus.ERROR, reason="unexpected response body")
        return parse(data)
    except httpx.HTTPError as e:
        logger.warning("Geolocation lookup for %s failed: %s", ip, e)
        return GeoLookupResult(GeoLookupStatus.ERROR, reason=str(e))
    except ValueError as e:
        # Non-JSON body
        logger.warning("Geolocation lookup for %s returned invalid JSON: %s", ip, e)
        return GeoLookupResult(GeoLookupStatus.ERROR, reason="invalid json")

