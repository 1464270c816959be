"""Referrer classification tests"""
import pytest
from app.services.referrer import (
    categorize_referrer,
    extract_search_keywords,
)


def test_empty_referrer_is_direct():
    assert categorize_referrer("") == {"category": "direct", "source": "Direct"}
    assert categorize_referrer(None) == {"category": "direct", "source": "Direct"}


def test_google_is_search():
    result = categorize_referrer("https://www.google.com/search?q=x")
    assert result["category"] == "search"
    assert result["source"] == "Google"
    assert result["domain"] == "google.com"


def test_utm_source_wins_over_url():
    result = categorize_referrer("https://anything", "newsletter")
    assert result == {"category": "campaign", "source": "newsletter"}


def test_utm_source_ignored_for_direct_traffic():
    assert categorize_referrer("", "newsletter")["category"] == "direct"


@pytest.mark.parametrize("referrer,source", [
    ("https://www.bing.com/search?q=a", "Bing"),
    ("https://search.yahoo.com/search?p=a", "Yahoo"),
    ("https://duckduckgo.com/?q=a", "DuckDuckGo"),
    ("https://www.ecosia.org/search?q=a", "Ecosia"),
])
def test_search_engines(referrer, source):
    result = categorize_referrer(referrer)
    assert result["category"] == "search"
    assert result["source"] == source


@pytest.mark.parametrize("referrer,source", [
    ("https://l.facebook.com/l.php?u=x", "Facebook"),
    ("https://www.instagram.com/", "Instagram"),
    ("https://x.com/someone/status/1", "Twitter/X"),
    ("https://t.co/abc", "Twitter/X"),
    ("https://www.linkedin.com/feed/", "LinkedIn"),
    ("https://www.youtube.com/watch?v=1", "YouTube"),
    ("https://www.reddit.com/r/smallbusiness", "Reddit"),
])
def test_social_platforms(referrer, source):
    result = categorize_referrer(referrer)
    assert result["category"] == "social"
    assert result["source"] == source


def test_hostname_ending_in_x_is_not_twitter():
    result = categorize_referrer("https://www.dropbox.com/s/file")
    assert result == {"category": "referral", "source": "dropbox.com", "domain": "dropbox.com"}


@pytest.mark.parametrize("referrer", [
    "https://outlook.live.com/mail/0/",
    "https://gmail.com/",
    "https://mail.proton.me/u/0/inbox",
])
def test_email_providers(referrer):
    result = categorize_referrer(referrer)
    assert result["category"] == "email"
    assert result["source"] == "Email"


def test_search_checked_before_email():
    # mail.google.com matches the Google pattern first
    assert categorize_referrer("https://mail.google.com/")["category"] == "search"


def test_unknown_site_is_referral_with_bare_hostname():
    result = categorize_referrer("https://www.example.org/blog/post")
    assert result["category"] == "referral"
    assert result["source"] == "example.org"


def test_same_host_is_internal():
    result = categorize_referrer("https://www.kandamarkets.com/about", site_hostname="kandamarkets.com")
    assert result["category"] == "internal"
    assert result["source"] == "Internal"


def test_unparseable_referrer_degrades_to_referral():
    result = categorize_referrer("not a url")
    assert result == {"category": "referral", "source": "not a url"}


def test_search_keywords_per_engine():
    assert extract_search_keywords("https://www.google.com/search?q=video+editing") == "video editing"
    assert extract_search_keywords("https://www.bing.com/search?q=reels") == "reels"
    assert extract_search_keywords("https://search.yahoo.com/search?p=editor") == "editor"
    assert extract_search_keywords("https://duckduckgo.com/?q=shorts") == "shorts"


def test_search_keywords_absent_or_unknown_engine():
    assert extract_search_keywords("https://www.google.com/") is None
    assert extract_search_keywords("https://yandex.ru/search/?text=x") is None
    assert extract_search_keywords("https://example.com/?q=x") is None
    assert extract_search_keywords("") is None


def test_search_keywords_malformed_url():
    assert extract_search_keywords("http://[::1") is None

