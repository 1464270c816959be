from sqlalchemy import Column, String, DateTime, Text, JSON, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum
from datetime import datetime
from app.db.session import Base


class LeadStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"


class Lead(Base):
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False)
    business_name = Column(String, nullable=False)
    instagram_handle = Column(String, nullable=False)
    services = Column(JSON, nullable=False)  # List of requested services, never empty
    business_type = Column(String, nullable=False)
    budget = Column(String, nullable=False)
    biggest_goal = Column(Text, nullable=False)
    status = Column(
        SQLEnum(LeadStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=LeadStatus.NEW,
        nullable=False,
        index=True,
    )
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=True)
