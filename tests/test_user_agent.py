import pytest
from app.services.user_agent import get_browser, get_os, get_device_type, device_from_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.91"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
FIREFOX_MAC = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0"
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)


@pytest.mark.parametrize("width,expected", [
    (320, "mobile"),
    (767, "mobile"),
    (768, "tablet"),
    (1023, "tablet"),
    (1024, "desktop"),
    (1920, "desktop"),
])
def test_device_type_by_viewport(width, expected):
    assert get_device_type(width) == expected


@pytest.mark.parametrize("ua,browser,os_name", [
    (CHROME_WINDOWS, "Chrome", "Windows"),
    (EDGE_WINDOWS, "Edge", "Windows"),
    (SAFARI_IPHONE, "Safari", "iOS"),
    (SAFARI_IPAD, "Safari", "iOS"),
    (FIREFOX_MAC, "Firefox", "macOS"),
    (CHROME_ANDROID, "Chrome", "Android"),
])
def test_browser_and_os(ua, browser, os_name):
    assert get_browser(ua) == browser
    assert get_os(ua) == os_name


def test_unmatched_user_agent_is_unknown():
    assert get_browser("curl/8.4.0") == "unknown"
    assert get_os("curl/8.4.0") == "unknown"
    assert get_browser(None) == "unknown"
    assert get_os("") == "unknown"


def test_device_from_user_agent():
    assert device_from_user_agent(SAFARI_IPHONE) == "mobile"
    assert device_from_user_agent(CHROME_ANDROID) == "mobile"
    assert device_from_user_agent(SAFARI_IPAD) == "tablet"
    assert device_from_user_agent(CHROME_WINDOWS) == "desktop"
    assert device_from_user_agent(None) is None
