from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any
from datetime import datetime
import re

from clicks_backend.core.notifications import Notification

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,30}$")
_URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)


class SocialLinks(BaseModel):
    twitter: str = Field(default="", max_length=100)
    github: str = Field(default="", max_length=100)
    linkedin: str = Field(default="", max_length=100)


class ProfileForm(BaseModel):
    """The full editable profile; submitted as a whole."""

    full_name: str = Field(default="", max_length=100)
    username: str = ""
    website: str = ""
    bio: str = Field(default="", max_length=500)
    location: str = Field(default="", max_length=100)
    social_links: SocialLinks = SocialLinks()

    @field_validator("full_name", "username", "website", "bio", "location", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        if v and not _USERNAME_RE.match(v):
            raise ValueError("Username must be 3-30 letters, digits or underscores")
        return v

    @field_validator("website")
    @classmethod
    def check_website(cls, v: str) -> str:
        if v and not _URL_RE.match(v):
            raise ValueError("Website must be an http(s) URL")
        return v

    @classmethod
    def from_profile(cls, profile: "ProfileResponse") -> "ProfileForm":
        links = profile.social_links or {}
        return cls(
            full_name=profile.full_name or "",
            username=profile.username or "",
            website=profile.website or "",
            bio=profile.bio or "",
            location=profile.location or "",
            social_links=SocialLinks(
                twitter=links.get("twitter") or "",
                github=links.get("github") or "",
                linkedin=links.get("linkedin") or "",
            ),
        )

    def to_row(self) -> Dict[str, Any]:
        """Column values for the profiles table; empty strings become null."""
        links = {k: v for k, v in self.social_links.model_dump().items() if v}
        return {
            "full_name": self.full_name or None,
            "username": self.username or None,
            "website": self.website or None,
            "bio": self.bio or None,
            "location": self.location or None,
            "social_links": links or None,
        }


class ProfileResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    website: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    social_links: Optional[Dict[str, Optional[str]]] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileResult(BaseModel):
    profile: ProfileResponse
    notification: Notification
