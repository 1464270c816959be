from sqlalchemy import Column, String, DateTime, Integer, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.db.session import Base


class UserSession(Base):
    """
    One row per client session id, created by the first pageview upsert.

    Insert-only: first_seen, referrer, entry_page, is_returning.
    Mutable afterwards: last_seen/device/geo/browser/os (last write wins),
    page_views (atomic increment), utm_* (set when present, never cleared),
    converted (only ever set to true), exit_page/session_duration/bounced (page exit).
    """
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, unique=True, index=True)
    first_seen = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    last_seen = Column(DateTime, default=datetime.utcnow, nullable=False)
    page_views = Column(Integer, default=0, nullable=False)

    device = Column(String, nullable=True)
    browser = Column(String, nullable=True)
    os = Column(String, nullable=True)
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    region = Column(String, nullable=True)

    referrer = Column(String, nullable=True)
    referrer_category = Column(String, nullable=True)
    referrer_source = Column(String, nullable=True)
    entry_page = Column(String, nullable=True)
    exit_page = Column(String, nullable=True)
    session_duration = Column(Integer, nullable=True)  # Milliseconds, computed at page exit

    converted = Column(Boolean, default=False, nullable=False)
    bounced = Column(Boolean, default=False, nullable=False)
    is_returning = Column(Boolean, default=False, nullable=False)

    utm_source = Column(String, nullable=True)
    utm_medium = Column(String, nullable=True)
    utm_campaign = Column(String, nullable=True)
    utm_term = Column(String, nullable=True)
    utm_content = Column(String, nullable=True)

    pages = relationship(
        "SessionPage",
        primaryjoin="UserSession.session_id == foreign(SessionPage.session_id)",
        order_by="SessionPage.id",
        viewonly=True,
        lazy="selectin",
    )

    @property
    def pages_visited(self):
        return [p.page for p in self.pages]


class SessionPage(Base):
    """Distinct pages visited by a session, in first-visit order (the pagesVisited set)."""
    __tablename__ = "session_pages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, index=True)
    page = Column(String, nullable=False)
    first_visited = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("session_id", "page", name="uq_session_pages_session_page"),
    )
