"""
Entity repositories over the active backend.

Each repository owns a local and (when the remote store is up) a remote
collection backend. Every public operation picks the backend once, at its
start, and runs entirely against it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generic, Optional, Type, TypeVar, Union
from urllib.parse import quote_plus

from dacite import DaciteError

from clubsite import seeds
from clubsite.backends import (
    BackendSelector,
    CollectionBackend,
    LocalCollection,
    RemoteCollection,
)
from clubsite.errors import DuplicateEmailError, NotFoundError
from clubsite.kv_store import KeyValueStore
from clubsite.models import (
    LANGUAGES,
    USER_ROLES,
    ContactMessage,
    Event,
    GalleryItem,
    LocalizedText,
    PageContent,
    Record,
    Resource,
    Testimonial,
    User,
    UserRole,
    to_document_fields,
)
from clubsite.storage import StorageClient

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

PROFILE_FIELDS = {
    "name",
    "avatar",
    "avatar_color",
    "custom_initials",
    "phone_number",
    "carrier",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_avatar(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote_plus(name)}&background=random"


@dataclass(frozen=True)
class CollectionLayout:
    name: str
    id_prefix: str = ""
    binary_fields: tuple[str, ...] = ()
    # New local records go to the front of the stored list.
    prepend: bool = False
    # Remote collections are seeded only where the site cannot render without data.
    seed_remote: bool = False


class BaseRepository(Generic[R]):
    record_type: Type[R]
    layout: CollectionLayout

    def __init__(
        self,
        selector: BackendSelector,
        kv_store: KeyValueStore,
        storage: Optional[StorageClient] = None,
        seed: Optional[list[dict]] = None,
    ):
        self.selector = selector
        self.local: CollectionBackend = LocalCollection(
            kv_store,
            self.layout.name,
            id_prefix=self.layout.id_prefix,
            seed=seed,
            prepend=self.layout.prepend,
        )
        self.remote: Optional[CollectionBackend] = None
        if selector.is_remote_active():
            self.remote = RemoteCollection(
                selector.document_store,
                self.layout.name,
                storage=storage,
                binary_fields=self.layout.binary_fields,
                seed=seed if self.layout.seed_remote else None,
            )

    def _backend(self) -> CollectionBackend:
        if self.selector.is_remote_active() and self.remote is not None:
            return self.remote
        return self.local

    def _decode(self, record: Optional[dict]) -> Optional[R]:
        if record is None:
            return None
        record = {**record, "id": str(record.get("id", ""))}
        try:
            return self.record_type.from_record(record)
        except (DaciteError, TypeError) as e:
            logger.warning(
                "Skipping unreadable %s record %s: %s",
                self.layout.name,
                record.get("id"),
                e,
            )
            return None

    def _validated(self, record: dict) -> dict:
        """Return `record` if it decodes as `record_type`; raise ValueError otherwise."""
        try:
            self.record_type.from_record({**record, "id": str(record.get("id", ""))})
        except (DaciteError, TypeError) as e:
            raise ValueError(f"Invalid {self.layout.name} record: {e}") from e
        return record

    def _insert(self, backend: CollectionBackend, entity: R, record_id: Optional[str] = None) -> R:
        record = self._validated(entity.as_record(include_id=False))
        return self._decode(backend.insert_record(record, record_id))

    def _check_fields(self, fields: dict) -> None:
        unknown = set(fields) - (self.record_type.field_names() - {"id"})
        if unknown:
            raise ValueError(
                f"Unknown {self.layout.name} fields: {', '.join(sorted(unknown))}"
            )


class ReadWriteRepository(BaseRepository[R]):
    def list(self) -> list[R]:
        records = self._backend().list_records()
        return [e for e in (self._decode(r) for r in records) if e is not None]

    def get(self, record_id: str) -> Optional[R]:
        return self._decode(self._backend().get_record(record_id))

    def require(self, record_id: str) -> R:
        entity = self.get(record_id)
        if entity is None:
            raise NotFoundError(self.layout.name, record_id)
        return entity

    def create(self, fields: dict) -> R:
        fields = {k: v for k, v in fields.items() if k != "id"}
        self._check_fields(fields)
        entity = self.record_type(id="", **fields)
        return self._insert(self._backend(), entity)

    def update(self, record_id: str, fields: dict) -> None:
        """Merge `fields` into an existing record; raises NotFoundError if absent."""
        self._check_fields(fields)
        backend = self._backend()
        current = backend.get_record(record_id)
        if current is None:
            raise NotFoundError(self.layout.name, record_id)
        changes = to_document_fields(fields)
        if not changes:
            return
        self._validated({**current, **changes})
        backend.update_record(record_id, changes)


class EntityRepository(ReadWriteRepository[R]):
    def delete(self, record_id: str) -> None:
        self._backend().delete_record(record_id)


class ApprovalMixin:
    """Approval flip for moderated content; `approval_default` covers unset flags."""

    approval_default: bool = False

    def toggle_approval(self, record_id: str) -> bool:
        return self._backend().toggle_flag(
            record_id, "approved", self.approval_default
        )


class UserRepository(EntityRepository[User]):
    record_type = User
    layout = CollectionLayout(name="users", id_prefix="u_")

    def _find_by_email(self, backend: CollectionBackend, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for record in backend.list_records():
            user = self._decode(record)
            if user is not None and user.email.lower() == wanted:
                return user
        return None

    def list_users(self) -> list[User]:
        return self.list()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.get(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self._find_by_email(self._backend(), email)

    def register_user(
        self,
        name: str,
        email: str,
        user_id: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> User:
        backend = self._backend()
        if self._find_by_email(backend, email):
            raise DuplicateEmailError(email)
        return self._insert(backend, self._member(name, email, avatar), user_id)

    def create_profile(
        self, user_id: str, name: str, email: str, avatar: Optional[str] = None
    ) -> User:
        """Store a member profile under an id chosen by the auth provider."""
        return self._insert(self._backend(), self._member(name, email, avatar), user_id)

    @staticmethod
    def _member(name: str, email: str, avatar: Optional[str]) -> User:
        return User(
            id="",
            name=name,
            email=email,
            role="member",
            avatar=avatar or default_avatar(name),
        )

    def update_user_role(self, user_id: str, role: UserRole) -> None:
        if role not in USER_ROLES:
            raise ValueError(f"Unknown role: {role}")
        self.update(user_id, {"role": role})

    def update_user_profile(self, user_id: str, fields: dict) -> None:
        disallowed = set(fields) - PROFILE_FIELDS
        if disallowed:
            raise ValueError(
                f"Profile update cannot change: {', '.join(sorted(disallowed))}"
            )
        self.update(user_id, fields)

    def delete_user(self, user_id: str) -> None:
        self.delete(user_id)


class EventRepository(EntityRepository[Event]):
    record_type = Event
    layout = CollectionLayout(name="events", binary_fields=("image",))

    def list_events(self) -> list[Event]:
        return self.list()

    def get_event(self, event_id: str) -> Optional[Event]:
        return self.get(event_id)

    def save_event(self, event: Union[Event, dict]) -> Event:
        """
        Create the event, or replace it when its id is already stored.

        An id that is unknown to the active backend is treated as a new event
        and gets a freshly assigned id.
        """
        if isinstance(event, dict):
            event = Event(**{"id": "", **event})
        backend = self._backend()
        if event.id and backend.get_record(event.id) is not None:
            record = self._validated(event.as_record(include_id=False))
            stored = backend.replace_record(event.id, record)
            return self._decode(stored)
        return self._insert(backend, event)

    def update_event(self, event_id: str, fields: dict) -> None:
        self.update(event_id, fields)

    def delete_event(self, event_id: str) -> None:
        self.delete(event_id)

    def toggle_rsvp(self, event_id: str, user_id: str) -> tuple[bool, Event]:
        """
        Add or remove `user_id` from the event's attendees.

        Returns (is_adding, updated event).
        """
        backend = self._backend()
        event = self._decode(backend.get_record(event_id))
        if event is None:
            raise NotFoundError(self.layout.name, event_id)
        is_adding = user_id not in event.attendees
        if is_adding:
            backend.add_to_set(event_id, "attendees", user_id)
        else:
            backend.remove_from_set(event_id, "attendees", user_id)
        return is_adding, self._decode(backend.get_record(event_id))


class GalleryRepository(ApprovalMixin, EntityRepository[GalleryItem]):
    record_type = GalleryItem
    layout = CollectionLayout(name="gallery", binary_fields=("url",), prepend=True)
    approval_default = True

    def list_gallery(self) -> list[GalleryItem]:
        return self.list()

    def add_gallery_item(self, fields: dict) -> GalleryItem:
        return self.create({**fields, "date_added": utc_now_iso()})

    def update_gallery_item(self, item_id: str, fields: dict) -> None:
        self.update(item_id, fields)

    def toggle_gallery_approval(self, item_id: str) -> bool:
        return self.toggle_approval(item_id)

    def delete_gallery_item(self, item_id: str) -> None:
        self.delete(item_id)


class TestimonialRepository(ApprovalMixin, EntityRepository[Testimonial]):
    record_type = Testimonial
    layout = CollectionLayout(name="testimonials", id_prefix="t_", prepend=True)
    approval_default = False

    def list_testimonials(self) -> list[Testimonial]:
        return self.list()

    def add_testimonial(self, text: str, author: str, role: str) -> Testimonial:
        return self.create(
            {"author": author, "role": role, "text": text, "approved": False}
        )

    def update_testimonial(self, testimonial_id: str, fields: dict) -> None:
        self.update(testimonial_id, fields)

    def delete_testimonial(self, testimonial_id: str) -> None:
        self.delete(testimonial_id)

    def toggle_testimonial_approval(self, testimonial_id: str) -> bool:
        return self.toggle_approval(testimonial_id)


class PageContentRepository(ReadWriteRepository[PageContent]):
    record_type = PageContent
    layout = CollectionLayout(name="page_content", seed_remote=True)

    def list_page_content(self) -> list[PageContent]:
        return self.list()

    def update_page_content(self, content_id: str, text: LocalizedText) -> None:
        unknown = set(text) - set(LANGUAGES)
        if unknown:
            raise ValueError(f"Unsupported languages: {', '.join(sorted(unknown))}")
        self.update(content_id, {"text": dict(text)})


class ResourceRepository(EntityRepository[Resource]):
    record_type = Resource
    layout = CollectionLayout(name="resources", id_prefix="r_", prepend=True)

    def list_resources(self) -> list[Resource]:
        return self.list()

    def add_resource(self, fields: dict) -> Resource:
        return self.create({**fields, "date_added": utc_now_iso()})

    def delete_resource(self, resource_id: str) -> None:
        self.delete(resource_id)


class MessageRepository(BaseRepository[ContactMessage]):
    """Contact form submissions. Write-only from the site's point of view."""

    record_type = ContactMessage
    layout = CollectionLayout(name="messages", prepend=True)

    def save_message(self, name: str, email: str, message: str) -> ContactMessage:
        entity = ContactMessage(
            id="",
            name=name,
            email=email,
            message=message,
            date=utc_now_iso(),
            read=False,
        )
        return self._insert(self._backend(), entity)


@dataclass
class Repositories:
    users: UserRepository
    events: EventRepository
    gallery: GalleryRepository
    testimonials: TestimonialRepository
    page_content: PageContentRepository
    resources: ResourceRepository
    messages: MessageRepository


def build_repositories(
    selector: BackendSelector,
    kv_store: KeyValueStore,
    storage: Optional[StorageClient] = None,
    with_samples: bool = True,
) -> Repositories:
    """
    Wire one repository per collection.

    `with_samples` controls whether the local fallback starts from the demo
    data; page text defaults are always present.
    """

    def sample(records: list[dict]) -> Optional[list[dict]]:
        return records if with_samples else None

    return Repositories(
        users=UserRepository(selector, kv_store, storage, sample(seeds.SAMPLE_USERS)),
        events=EventRepository(selector, kv_store, storage, sample(seeds.SAMPLE_EVENTS)),
        gallery=GalleryRepository(
            selector, kv_store, storage, sample(seeds.SAMPLE_GALLERY)
        ),
        testimonials=TestimonialRepository(
            selector, kv_store, storage, sample(seeds.SAMPLE_TESTIMONIALS)
        ),
        page_content=PageContentRepository(
            selector, kv_store, storage, seeds.DEFAULT_PAGE_CONTENT
        ),
        resources=ResourceRepository(selector, kv_store, storage),
        messages=MessageRepository(selector, kv_store, storage),
    )
