"""
Pydantic schemas for the club site API.
"""

from __future__ import annotations

from typing import Dict, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field

UserRoleField = Literal["admin", "member", "guest"]
EventTypeField = Literal["performance", "workshop", "social"]
LocalizedTextField = Dict[str, str]


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: UserRoleField
    avatar: Optional[str] = None
    avatar_color: Optional[str] = None
    custom_initials: Optional[str] = None
    phone_number: Optional[str] = None
    carrier: Optional[str] = None


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SessionResponse(BaseModel):
    token: Optional[str]
    user: UserOut


class RoleUpdateRequest(BaseModel):
    role: UserRoleField


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    avatar_color: Optional[str] = None
    custom_initials: Optional[str] = Field(default=None, max_length=3)
    phone_number: Optional[str] = None
    carrier: Optional[str] = None


class EventOut(BaseModel):
    id: str
    title: str
    date: str
    time: str
    end_time: Optional[str] = None
    location: str
    description: Union[LocalizedTextField, str]
    type: EventTypeField
    image: Optional[str] = None
    attendees: list[str]


class EventSaveRequest(BaseModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    time: str = ""
    end_time: Optional[str] = None
    location: str = ""
    description: Union[LocalizedTextField, str] = ""
    type: EventTypeField = "performance"
    image: Optional[str] = None
    attendees: list[str] = Field(default_factory=list)


class RsvpResponse(BaseModel):
    is_adding: bool
    event: EventOut


class GalleryItemOut(BaseModel):
    id: str
    url: str
    caption: str
    source: Literal["upload", "instagram"]
    date_added: str
    type: Literal["image", "video"]
    event_id: Optional[str] = None
    approved: bool
    uploaded_by: Optional[str] = None


class GalleryItemCreateRequest(BaseModel):
    url: str = Field(..., min_length=1)
    caption: str = ""
    source: Literal["upload", "instagram"] = "upload"
    type: Literal["image", "video"] = "image"
    event_id: Optional[str] = None
    approved: Optional[bool] = None


class ApprovalResponse(BaseModel):
    id: str
    approved: bool


class TestimonialOut(BaseModel):
    id: str
    author: str
    role: str
    text: str
    approved: bool


class TestimonialCreateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
    role: str = "Member"


class TestimonialUpdateRequest(BaseModel):
    author: Optional[str] = None
    role: Optional[str] = None
    text: Optional[str] = Field(default=None, max_length=2000)


class PageContentOut(BaseModel):
    id: str
    description: str
    text: LocalizedTextField


class PageContentUpdateRequest(BaseModel):
    text: LocalizedTextField


class ResourceOut(BaseModel):
    id: str
    title: str
    description: str
    url: str
    category: Literal["music", "choreography", "costume", "document"]
    date_added: str


class ResourceCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    url: str = Field(..., min_length=1)
    category: Literal["music", "choreography", "costume", "document"] = "document"


class ContactRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)


class StatusResponse(BaseModel):
    status: Literal["ok"]


class BackendStatusResponse(BaseModel):
    remote_active: bool
    reason: Optional[str] = None
