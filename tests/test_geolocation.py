"""Geolocation lookup tests; providers are served by httpx.MockTransport"""
from dataclasses import asdict

import httpx
import pytest

from app.core.config import settings
from app.services.geolocation import (
    GeoLookupStatus,
    get_client_ip,
    is_private_ip,
    lookup_geolocation,
)


@pytest.fixture(autouse=True)
def enable_geolocation(monkeypatch):
    monkeypatch.setattr(settings, "GEOLOCATION_ENABLED", True)


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_client_ip_header_priority():
    headers = {
        "x-real-ip": "198.51.100.2",
        "x-forwarded-for": "203.0.113.5, 10.0.0.1",
    }
    assert get_client_ip(headers) == "203.0.113.5"
    assert get_client_ip({**headers, "cf-connecting-ip": "192.0.2.9"}) == "192.0.2.9"
    assert get_client_ip({"X-Client-IP": " 192.0.2.10 "}) == "192.0.2.10"


def test_client_ip_missing():
    assert get_client_ip({}) is None
    assert get_client_ip({"x-forwarded-for": ""}) is None


def test_private_ips():
    assert is_private_ip("127.0.0.1")
    assert is_private_ip("10.1.2.3")
    assert is_private_ip("::1")
    assert is_private_ip("not-an-ip")
    assert not is_private_ip("8.8.8.8")


def test_ipapi_response_mapping():
    def handler(request):
        assert request.url.host == "ipapi.co"
        assert request.url.path == "/8.8.8.8/json/"
        return httpx.Response(200, json={
            "ip": "8.8.8.8",
            "city": "Mountain View",
            "region": "California",
            "country_name": "United States",
            "country_code": "US",
            "latitude": 37.4,
            "longitude": -122.1,
            "timezone": "America/Los_Angeles",
        })

    result = lookup_geolocation("8.8.8.8", client=mock_client(handler), provider="ipapi")
    assert result.ok
    assert asdict(result.location) == {
        "country": "United States",
        "country_code": "US",
        "city": "Mountain View",
        "region": "California",
        "latitude": 37.4,
        "longitude": -122.1,
        "timezone": "America/Los_Angeles",
        "ip": "8.8.8.8",
    }


def test_ip_api_response_mapping():
    def handler(request):
        assert request.url.host == "ip-api.com"
        return httpx.Response(200, json={
            "status": "success",
            "country": "Germany",
            "countryCode": "DE",
            "regionName": "Hesse",
            "city": "Frankfurt",
            "lat": 50.1,
            "lon": 8.7,
            "timezone": "Europe/Berlin",
            "query": "8.8.4.4",
        })

    result = lookup_geolocation("8.8.4.4", client=mock_client(handler), provider="ip-api")
    assert result.status == GeoLookupStatus.OK
    assert result.location.country == "Germany"
    assert result.location.region == "Hesse"
    assert result.location.ip == "8.8.4.4"


def test_ip_api_reserved_range_maps_to_local():
    def handler(request):
        return httpx.Response(200, json={"status": "fail", "message": "reserved range", "query": "8.8.8.8"})

    result = lookup_geolocation("8.8.8.8", client=mock_client(handler), provider="ip-api")
    assert result.location.country == "Local"
    assert result.location.city == "Development"


@pytest.mark.parametrize("response", [
    httpx.Response(429, text="Too many requests"),
    httpx.Response(200, json={"error": True, "reason": "RateLimited"}),
    httpx.Response(200, text="<html>oops</html>"),
])
def test_provider_failures_degrade_to_empty(response):
    result = lookup_geolocation("8.8.8.8", client=mock_client(lambda request: response), provider="ipapi")
    assert result.status == GeoLookupStatus.ERROR
    assert result.location.is_empty()


def test_network_error_degrades_to_empty():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = lookup_geolocation("8.8.8.8", client=mock_client(handler))
    assert result.status == GeoLookupStatus.ERROR
    assert result.location.is_empty()


def test_private_ip_skips_network():
    def handler(request):
        pytest.fail("private addresses must not be looked up")

    result = lookup_geolocation("192.168.1.20", client=mock_client(handler))
    assert result.status == GeoLookupStatus.NO_DATA
    assert result.location.is_empty()
    assert lookup_geolocation(None, client=mock_client(handler)).status == GeoLookupStatus.NO_DATA


def test_disabled_lookup(monkeypatch):
    monkeypatch.setattr(settings, "GEOLOCATION_ENABLED", False)

    def handler(request):
        pytest.fail("lookup is disabled")

    assert lookup_geolocation("8.8.8.8", client=mock_client(handler)).status == GeoLookupStatus.NO_DATA


def test_empty_provider_response_is_no_data():
    result = lookup_geolocation("8.8.8.8", client=mock_client(lambda request: httpx.Response(200, json={})))
    assert result.status == GeoLookupStatus.NO_DATA

