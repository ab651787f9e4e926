from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime
import re

from clicks_backend.core.notifications import Notification

ClickFrequency = Literal["daily", "weekly", "monthly"]
MemberRole = Literal["admin", "member"]

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ClickSchedule(BaseModel):
    frequency: ClickFrequency
    day: Optional[int] = Field(default=None, ge=1, le=31)
    time: Optional[str] = None

    @field_validator("time")
    @classmethod
    def check_time(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not _TIME_RE.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v


class ClickCreate(BaseModel):
    name: str = Field(min_length=3, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    schedule: Optional[ClickSchedule] = None
    invitees: List[str] = []
    request_id: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description")
    @classmethod
    def blank_description(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    def invitees_for(self, caller_id: str) -> List[str]:
        """Invitees in submission order, without duplicates or the caller."""
        seen = {caller_id}
        result = []
        for user_id in self.invitees:
            if user_id in seen:
                continue
            seen.add(user_id)
            result.append(user_id)
        return result


class ClickResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    schedule_frequency: Optional[ClickFrequency] = None
    schedule_day: Optional[int] = None
    schedule_time: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClickMemberAdd(BaseModel):
    user_id: str
    role: MemberRole = "member"


class ClickMemberResponse(BaseModel):
    click_id: str
    user_id: str
    role: MemberRole = "member"
    joined_at: Optional[datetime] = None

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, v):
        return v or "member"

    class Config:
        from_attributes = True


class InvitableUser(BaseModel):
    id: str
    username: Optional[str] = None


class ClickCreationResult(BaseModel):
    status: Literal["success", "validation_error", "unauthenticated", "creation_failed", "partial_failure"]
    click: Optional[ClickResponse] = None
    errors: List[dict] = []
    compensated: bool = False
    notification: Notification
