from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from app.models.lead import LeadStatus
from datetime import datetime
from uuid import UUID

# Checked in this order; the first missing one is named in the 400 response
REQUIRED_LEAD_FIELDS = [
    "fullName",
    "email",
    "phone",
    "businessName",
    "instagramHandle",
    "businessType",
    "budget",
    "biggestGoal",
]

VALID_LEAD_STATUSES = ["new", "contacted", "qualified", "converted"]


class LeadBase(BaseModel):
    full_name: str
    email: str  # Plain str, the intake form does its own format check
    phone: str
    business_name: str
    instagram_handle: str
    services: List[str] = Field(..., min_length=1)
    business_type: str
    budget: str
    biggest_goal: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LeadCreate(LeadBase):
    pass


class Lead(LeadBase):
    id: UUID
    status: LeadStatus
    submitted_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class LeadList(BaseModel):
    leads: List[Lead]
    total: int


class LeadSubmitResponse(BaseModel):
    success: bool = True
    message: str
    lead_id: UUID = Field(..., serialization_alias="leadId")


class LeadStatusUpdateResponse(BaseModel):
    success: bool = True
    message: str
