from sqlalchemy import Column, String, DateTime, Integer, Boolean, Float, Index
from datetime import datetime
from app.db.session import Base


class PageView(Base):
    __tablename__ = "page_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, index=True)
    page = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    user_agent = Column(String, nullable=True)

    # Traffic source
    referrer = Column(String, nullable=True)
    referrer_category = Column(String, nullable=True)  # direct, search, social, email, referral, campaign, internal
    referrer_source = Column(String, nullable=True)
    search_keywords = Column(String, nullable=True)

    # Geo enrichment (best-effort, every field optional)
    country = Column(String, nullable=True)
    country_code = Column(String, nullable=True)
    city = Column(String, nullable=True)
    region = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    timezone = Column(String, nullable=True)
    ip = Column(String, nullable=True)

    device = Column(String, nullable=True)  # mobile, tablet, desktop
    browser = Column(String, nullable=True)
    os = Column(String, nullable=True)
    screen_resolution = Column(String, nullable=True)

    utm_source = Column(String, nullable=True)
    utm_medium = Column(String, nullable=True)
    utm_campaign = Column(String, nullable=True)
    utm_term = Column(String, nullable=True)
    utm_content = Column(String, nullable=True)

    entry_page = Column(Boolean, default=False, nullable=False)
    exit_page = Column(Boolean, default=False, nullable=False)  # Set once by page_exit
    time_on_page = Column(Integer, nullable=True)  # Milliseconds, set with exit_page

    __table_args__ = (
        Index("ix_page_views_session_page", "session_id", "page"),
    )
