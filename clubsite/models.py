"""
Record types stored by the club site.

Documents are persisted with camelCase keys (the shape the browser front-end
reads); the dataclasses below use snake_case and convert on the way in/out.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Dict, List, Literal, Optional, Type, TypeVar, Union

from dacite import Config, from_dict

from clubsite.json_utils import camel_to_snake, convert_keys, snake_to_camel

UserRole = Literal["admin", "member", "guest"]
USER_ROLES = ("admin", "member", "guest")
EventType = Literal["performance", "workshop", "social"]
GallerySource = Literal["upload", "instagram"]
MediaType = Literal["image", "video"]
ResourceCategory = Literal["music", "choreography", "costume", "document"]

LANGUAGES = ("en", "ro", "fr")

LocalizedText = Dict[str, str]

R = TypeVar("R", bound="Record")

_DACITE_CONFIG = Config(strict=False)


@dataclass
class Record:
    id: str

    @classmethod
    def from_record(cls: Type[R], record: dict) -> R:
        return from_dict(
            data_class=cls,
            data=convert_keys(record, camel_to_snake),
            config=_DACITE_CONFIG,
        )

    def as_record(self, include_id: bool = True) -> dict:
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if not include_id:
            data.pop("id", None)
        return convert_keys(data, snake_to_camel)

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}


@dataclass
class User(Record):
    name: str
    email: str
    role: UserRole = "member"
    avatar: Optional[str] = None
    avatar_color: Optional[str] = None
    custom_initials: Optional[str] = None
    phone_number: Optional[str] = None
    carrier: Optional[str] = None


@dataclass
class Event(Record):
    title: str
    date: str
    time: str = ""
    location: str = ""
    # Legacy records carry a plain string instead of per-language text.
    description: Union[LocalizedText, str] = ""
    type: EventType = "performance"
    end_time: Optional[str] = None
    image: Optional[str] = None
    attendees: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.attendees = list(dict.fromkeys(self.attendees))


@dataclass
class GalleryItem(Record):
    url: str
    caption: str = ""
    source: GallerySource = "upload"
    date_added: str = ""
    type: MediaType = "image"
    event_id: Optional[str] = None
    # Items written before moderation existed have no flag and stay visible.
    approved: bool = True
    uploaded_by: Optional[str] = None


@dataclass
class Testimonial(Record):
    author: str
    role: str = ""
    text: str = ""
    approved: bool = False


@dataclass
class PageContent(Record):
    description: str = ""
    text: LocalizedText = field(default_factory=dict)


@dataclass
class ContactMessage(Record):
    name: str
    email: str
    message: str
    date: str = ""
    read: bool = False


@dataclass
class Resource(Record):
    title: str
    description: str = ""
    url: str = ""
    category: ResourceCategory = "document"
    date_added: str = ""


def to_document_fields(values: dict) -> dict:
    """Convert a partial snake_case update into stored document keys."""
    return convert_keys(values, snake_to_camel)
