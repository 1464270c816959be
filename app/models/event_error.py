from sqlalchemy import Column, String, DateTime, JSON, Text
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from app.db.session import Base


class EventError(Base):
    """A tracking event that passed validation but could not be stored."""
    __tablename__ = "event_errors"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_type = Column(String, nullable=True, index=True)
    session_id = Column(String, nullable=True, index=True)
    payload = Column(JSON, nullable=True)  # Raw "data" object as received
    reason = Column(Text, nullable=True)
    received_at = Column(DateTime, default=datetime.utcnow, nullable=False)
