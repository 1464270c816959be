"""Tracking ingestion tests: session stitching and per-event side effects"""
import itertools

import pytest

from app.models.event_error import EventError
from app.models.interaction import ClickEvent, ScrollEvent, FormInteraction, FormSubmission
from app.models.page_view import PageView
from app.models.session import UserSession
from app.schemas.event import EventType
from app.services import ingestion

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def get_session(db, session_id):
    db.expire_all()
    return db.query(UserSession).filter(UserSession.session_id == session_id).first()


def test_pageview_creates_single_session(track, db_session):
    assert track("pageview", sessionId="s1", page="/").json() == {"success": True}
    assert track("pageview", sessionId="s1", page="/pricing").status_code == 200

    sessions = db_session.query(UserSession).filter(UserSession.session_id == "s1").all()
    assert len(sessions) == 1
    assert sessions[0].page_views == 2
    assert db_session.query(PageView).filter(PageView.session_id == "s1").count() == 2


def test_pages_visited_suppresses_duplicates(track, db_session):
    for page in ["/", "/pricing", "/", "/about"]:
        track("pageview", sessionId="s1", page=page)

    session = get_session(db_session, "s1")
    assert session.page_views == 4
    assert session.pages_visited == ["/", "/pricing", "/about"]


def test_insert_only_fields_never_change(track, db_session, clock):
    first = clock.now
    track("pageview", sessionId="s1", page="/", referrer="https://www.google.com/search?q=editing")
    later = clock.advance(minutes=3)
    track("pageview", sessionId="s1", page="/pricing", referrer="https://www.facebook.com/")

    session = get_session(db_session, "s1")
    assert session.first_seen == first
    assert session.last_seen == later
    assert session.referrer == "https://www.google.com/search?q=editing"
    assert session.entry_page == "/"
    # Category and source follow the latest pageview
    assert session.referrer_category == "social"
    assert session.referrer_source == "Facebook"


def test_utm_fields_set_when_present_and_never_cleared(track, db_session):
    track("pageview", sessionId="s1", page="/", utmSource="newsletter", utmMedium="email")
    track("pageview", sessionId="s1", page="/pricing")
    track("pageview", sessionId="s1", page="/about", utmCampaign="spring")

    session = get_session(db_session, "s1")
    assert session.utm_source == "newsletter"
    assert session.utm_medium == "email"
    assert session.utm_campaign == "spring"


def test_blank_utm_values_never_clear_stored_ones(track, db_session):
    track("pageview", sessionId="s1", page="/", utmSource="newsletter", utmCampaign="spring")
    track("pageview", sessionId="s1", page="/pricing", utmSource="", utmCampaign="")

    session = get_session(db_session, "s1")
    assert session.utm_source == "newsletter"
    assert session.utm_campaign == "spring"


def test_blank_utm_values_stored_as_null(track, db_session):
    track("pageview", sessionId="s2", page="/", utmSource="", utmMedium="")

    session = get_session(db_session, "s2")
    assert session.utm_source is None
    assert session.utm_medium is None
    view = db_session.query(PageView).filter(PageView.session_id == "s2").one()
    assert view.utm_source is None
    assert session.referrer_category == "direct"


def test_pageview_enrichment(track, db_session, geo_calls):
    response = track(
        "pageview",
        headers={"x-forwarded-for": "8.8.8.8, 10.0.0.1"},
        sessionId="s1",
        page="/",
        userAgent=CHROME_UA,
        referrer="https://www.google.com/search?q=short+form+video",
        country="Nowhere",
    )
    assert response.status_code == 200
    assert geo_calls == ["8.8.8.8"]

    view = db_session.query(PageView).filter(PageView.session_id == "s1").one()
    assert view.country == "United States"
    assert view.country_code == "US"
    assert view.city == "Austin"
    assert view.referrer_category == "search"
    assert view.referrer_source == "Google"
    assert view.search_keywords == "short form video"
    # Server-side fallback from the user agent
    assert view.browser == "Chrome"
    assert view.os == "Windows"
    assert view.device == "desktop"

    session = get_session(db_session, "s1")
    assert session.country == "United States"
    assert session.region == "Texas"


def test_geo_lookup_only_for_pageviews(track, geo_calls):
    headers = {"x-forwarded-for": "8.8.8.8"}
    track("click", headers=headers, sessionId="s1", elementId="cta")
    track("scroll", headers=headers, sessionId="s1", page="/", scrollDepth=10)
    assert geo_calls == []


def test_client_location_used_without_client_ip(track, db_session, geo_calls):
    track("pageview", sessionId="s1", page="/", country="Canada", city="Toronto", browser="Firefox")

    assert geo_calls == []
    view = db_session.query(PageView).one()
    assert view.country == "Canada"
    assert view.city == "Toronto"
    assert view.browser == "Firefox"


def test_missing_values_keep_stored_session_fields(track, db_session):
    track("pageview", sessionId="s1", page="/", device="mobile", browser="Safari", country="Canada")
    track("pageview", sessionId="s1", page="/pricing")

    session = get_session(db_session, "s1")
    assert session.device == "mobile"
    assert session.browser == "Safari"
    assert session.country == "Canada"


def test_pageview_then_exit_marks_one_view(track, db_session):
    track("pageview", sessionId="s1", page="/")
    track("pageview", sessionId="s1", page="/pricing")
    assert track("page_exit", sessionId="s1", page="/pricing", timeOnPage=4200).status_code == 200

    db_session.expire_all()
    views = db_session.query(PageView).filter(PageView.session_id == "s1").order_by(PageView.id).all()
    exited = [v for v in views if v.exit_page]
    assert len(exited) == 1
    assert exited[0].page == "/pricing"
    assert exited[0].time_on_page == 4200
    assert views[0].exit_page is False
    assert views[0].time_on_page is None


def test_exit_marks_newest_open_view_first(track, db_session, clock):
    track("pageview", sessionId="s1", page="/")
    clock.advance(seconds=5)
    track("pageview", sessionId="s1", page="/")
    track("page_exit", sessionId="s1", page="/", timeOnPage=1000)

    db_session.expire_all()
    older, newer = db_session.query(PageView).order_by(PageView.id).all()
    assert newer.exit_page is True
    assert older.exit_page is False

    track("page_exit", sessionId="s1", page="/", timeOnPage=2000)
    db_session.expire_all()
    assert db_session.query(PageView).filter(PageView.exit_page.is_(True)).count() == 2


def test_single_page_short_visit_bounces(track, db_session, clock):
    track("pageview", sessionId="s1", page="/")
    clock.advance(seconds=10)
    track("page_exit", sessionId="s1", page="/", timeOnPage=10000)

    session = get_session(db_session, "s1")
    assert session.bounced is True
    assert session.session_duration == 10000
    assert session.exit_page == "/"


def test_second_pageview_prevents_bounce(track, db_session, clock):
    track("pageview", sessionId="s1", page="/")
    track("pageview", sessionId="s1", page="/pricing")
    clock.advance(seconds=10)
    track("page_exit", sessionId="s1", page="/pricing", timeOnPage=5000)

    assert get_session(db_session, "s1").bounced is False


def test_long_single_page_visit_is_not_a_bounce(track, db_session, clock):
    track("pageview", sessionId="s1", page="/")
    clock.advance(seconds=45)
    track("page_exit", sessionId="s1", page="/", timeOnPage=45000)

    session = get_session(db_session, "s1")
    assert session.bounced is False
    assert session.session_duration == 45000


def test_exit_without_session_is_noop(track, db_session):
    response = track("page_exit", sessionId="ghost", page="/", timeOnPage=100)
    assert response.status_code == 200
    assert get_session(db_session, "ghost") is None


@pytest.mark.parametrize("depths", list(itertools.permutations([40, 80, 20, 60])))
def test_max_scroll_depth_is_order_independent(track, db_session, depths):
    for depth in depths:
        assert track("scroll", sessionId="s1", page="/", scrollDepth=depth).status_code == 200

    db_session.expire_all()
    rows = db_session.query(ScrollEvent).filter(ScrollEvent.session_id == "s1").all()
    assert len(rows) == 1
    assert rows[0].max_scroll_depth == 80
    assert rows[0].scroll_depth == depths[-1]


def test_scroll_rows_are_per_page(track, db_session):
    track("scroll", sessionId="s1", page="/", scrollDepth=30, maxScrollDepth=50)
    track("scroll", sessionId="s1", page="/pricing", scrollDepth=10)

    rows = {r.page: r for r in db_session.query(ScrollEvent).all()}
    assert rows["/"].max_scroll_depth == 50
    assert rows["/pricing"].max_scroll_depth == 10


def test_click_and_form_interaction_are_inserted(track, db_session):
    track("click", sessionId="s1", elementId="hero-cta", elementType="button", elementText="Apply", page="/")
    track("click", sessionId="s1", elementId="hero-cta", elementType="button", elementText="Apply", page="/")
    track("form_interaction", sessionId="s1", formId="apply", fieldName="email", action="focus", page="/apply")

    assert db_session.query(ClickEvent).count() == 2
    interaction = db_session.query(FormInteraction).one()
    assert interaction.action == "focus"
    assert interaction.field_name == "email"


def test_form_interaction_rejects_unknown_action(track):
    response = track("form_interaction", sessionId="s1", formId="apply", action="hover")
    assert response.status_code == 400


def test_successful_submission_converts_session(track, db_session):
    track("pageview", sessionId="s1", page="/apply")
    for _ in range(2):
        response = track("form_submission", sessionId="s1", formType="application", page="/apply", success=True)
        assert response.status_code == 200
        assert get_session(db_session, "s1").converted is True

    assert db_session.query(FormSubmission).count() == 2


def test_failed_submission_does_not_convert(track, db_session):
    track("pageview", sessionId="s1", page="/apply")
    track("form_submission", sessionId="s1", formType="application", success=False, fieldErrors=["email"])

    assert get_session(db_session, "s1").converted is False
    assert db_session.query(FormSubmission).one().field_errors == ["email"]


def test_unknown_event_type_is_rejected(track):
    response = track("purchase", sessionId="s1")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid event type"}


@pytest.mark.parametrize("body", [
    {"data": {"sessionId": "s1"}},
    {"eventType": "pageview"},
    {"eventType": "pageview", "data": "nope"},
    {"eventType": "pageview", "data": {"page": "/"}},
    {"eventType": "scroll", "data": {"sessionId": "s1", "page": "/", "scrollDepth": 140}},
])
def test_malformed_envelopes_are_rejected(client, body):
    response = client.post("/analytics/track", json=body)
    assert response.status_code == 400
    assert "error" in response.json()


def test_invalid_json_is_rejected(client):
    response = client.post(
        "/analytics/track",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_store_failure_is_500_and_recorded(track, db_session, clock, monkeypatch):
    def broken(db, payload, ctx):
        raise RuntimeError("disk full")

    monkeypatch.setitem(ingestion.EVENT_HANDLERS, EventType.CLICK, broken)

    response = track("click", sessionId="s1", elementId="cta")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to track event"}

    error = db_session.query(EventError).one()
    assert error.event_type == "click"
    assert error.reason == "disk full"
    assert error.payload["sessionId"] == "s1"
    assert error.session_id == "s1"
    assert error.received_at == clock.now
