from sqlalchemy import Column, String, DateTime, Integer, Boolean, Float, JSON, UniqueConstraint
from datetime import datetime
from app.db.session import Base


class ClickEvent(Base):
    __tablename__ = "click_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, index=True)
    element_id = Column(String, nullable=True, index=True)  # Best-effort human identifier
    element_type = Column(String, nullable=True)  # button, a, role value, ...
    element_text = Column(String, nullable=True)
    page = Column(String, nullable=True)
    x_position = Column(Float, nullable=True)
    y_position = Column(Float, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class ScrollEvent(Base):
    """One row per (session_id, page); upserted, never appended."""
    __tablename__ = "scroll_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False)
    page = Column(String, nullable=False)
    scroll_depth = Column(Float, nullable=True)  # Latest reported depth (percent)
    max_scroll_depth = Column(Float, nullable=True)  # Never decreases
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("session_id", "page", name="uq_scroll_events_session_page"),
    )


class FormInteraction(Base):
    __tablename__ = "form_interactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, index=True)
    form_id = Column(String, nullable=True, index=True)
    field_name = Column(String, nullable=True)
    action = Column(String, nullable=True)  # focus, blur, change, error
    time_spent = Column(Integer, nullable=True)  # Milliseconds
    page = Column(String, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class FormSubmission(Base):
    __tablename__ = "form_submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, index=True)
    form_type = Column(String, nullable=True, index=True)
    page = Column(String, nullable=True)
    success = Column(Boolean, default=False, nullable=False)
    time_taken = Column(Integer, nullable=True)  # Milliseconds from first interaction to submit
    field_errors = Column(JSON, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
