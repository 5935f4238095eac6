"""
HTTP routes for the club site API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clubsite.dependencies import get_club_service
from clubsite.errors import PermissionDeniedError
from clubsite.models import User
from clubsite.schemas import (
    ApprovalResponse,
    BackendStatusResponse,
    ContactRequest,
    EventOut,
    EventSaveRequest,
    GalleryItemCreateRequest,
    GalleryItemOut,
    LoginRequest,
    PageContentOut,
    PageContentUpdateRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    ResourceCreateRequest,
    ResourceOut,
    RoleUpdateRequest,
    RsvpResponse,
    SessionResponse,
    StatusResponse,
    TestimonialCreateRequest,
    TestimonialOut,
    TestimonialUpdateRequest,
    UserOut,
)
from clubsite.services import ClubService

logger = logging.getLogger(__name__)

router = APIRouter()
bearer_scheme = HTTPBearer(auto_error=False)


def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_token),
    service: ClubService = Depends(get_club_service),
) -> User:
    principal = service.auth.verify_token(token)
    return service.resolve_identity(principal)


def require_member(user: User = Depends(get_current_user)) -> User:
    # Guests are signed in but not yet accepted into the club.
    if user.role not in ("member", "admin"):
        raise PermissionDeniedError("Club membership required")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise PermissionDeniedError("Administrator role required")
    return user


@router.get("/status", response_model=BackendStatusResponse)
def backend_status(service: ClubService = Depends(get_club_service)):
    selector = service.repos.events.selector
    return BackendStatusResponse(
        remote_active=selector.is_remote_active(),
        reason=selector.inactive_reason,
    )


# --- Auth ---


@router.post("/auth/register", response_model=SessionResponse, status_code=201)
def register(payload: RegisterRequest, service: ClubService = Depends(get_club_service)):
    return service.register(payload.name, payload.email, payload.password)


@router.post("/auth/login", response_model=SessionResponse)
def login(payload: LoginRequest, service: ClubService = Depends(get_club_service)):
    return service.sign_in(payload.email, payload.password)


@router.post("/auth/logout", response_model=StatusResponse)
def logout(
    token: str = Depends(get_token), service: ClubService = Depends(get_club_service)
):
    service.sign_out(token)
    return StatusResponse(status="ok")


@router.get("/auth/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


# --- Users ---


@router.get("/users", response_model=list[UserOut])
def list_users(
    _: User = Depends(require_admin), service: ClubService = Depends(get_club_service)
):
    return service.repos.users.list_users()


@router.patch("/users/me/profile", response_model=UserOut)
def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    service: ClubService = Depends(get_club_service),
):
    service.repos.users.update_user_profile(
        user.id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return service.repos.users.require(user.id)


@router.patch("/users/{user_id}/role", response_model=UserOut)
def update_role(
    user_id: str,
    payload: RoleUpdateRequest,
    admin: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot change your own role.")
    service.repos.users.update_user_role(user_id, payload.role)
    return service.repos.users.require(user_id)


@router.delete("/users/{user_id}", response_model=StatusResponse)
def delete_user(
    user_id: str,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    service.repos.users.delete_user(user_id)
    return StatusResponse(status="ok")


# --- Events ---


@router.get("/events", response_model=list[EventOut])
def list_events(service: ClubService = Depends(get_club_service)):
    return sorted(service.repos.events.list_events(), key=lambda e: (e.date, e.time))


@router.get("/events/{event_id}", response_model=EventOut)
def get_event(event_id: str, service: ClubService = Depends(get_club_service)):
    return service.repos.events.require(event_id)


@router.put("/events", response_model=EventOut)
def save_event(
    payload: EventSaveRequest,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    return service.repos.events.save_event(payload.model_dump(exclude_none=True))


@router.delete("/events/{event_id}", response_model=StatusResponse)
def delete_event(
    event_id: str,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    service.repos.events.delete_event(event_id)
    return StatusResponse(status="ok")


@router.post("/events/{event_id}/rsvp", response_model=RsvpResponse)
def rsvp_event(
    event_id: str,
    user: User = Depends(require_member),
    service: ClubService = Depends(get_club_service),
):
    return service.rsvp_event(event_id, user.id)


# --- Gallery ---


@router.get("/gallery", response_model=list[GalleryItemOut])
def list_gallery(
    approved_only: bool = Query(False),
    service: ClubService = Depends(get_club_service),
):
    items = service.repos.gallery.list_gallery()
    if approved_only:
        items = [item for item in items if item.approved]
    return items


@router.post("/gallery", response_model=GalleryItemOut, status_code=201)
def add_gallery_item(
    payload: GalleryItemCreateRequest,
    user: User = Depends(require_member),
    service: ClubService = Depends(get_club_service),
):
    fields = payload.model_dump(exclude_none=True)
    # Member contributions wait for moderation.
    if user.role != "admin":
        fields["approved"] = False
    fields["uploaded_by"] = user.id
    return service.repos.gallery.add_gallery_item(fields)


@router.post("/gallery/sync-instagram", response_model=list[GalleryItemOut])
def sync_instagram(
    _: User = Depends(require_admin), service: ClubService = Depends(get_club_service)
):
    return service.sync_instagram()


@router.post("/gallery/{item_id}/toggle-approval", response_model=ApprovalResponse)
def toggle_gallery_approval(
    item_id: str,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    approved = service.repos.gallery.toggle_gallery_approval(item_id)
    return ApprovalResponse(id=item_id, approved=approved)


@router.delete("/gallery/{item_id}", response_model=StatusResponse)
def delete_gallery_item(
    item_id: str,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    service.repos.gallery.delete_gallery_item(item_id)
    return StatusResponse(status="ok")


# --- Testimonials ---


@router.get("/testimonials", response_model=list[TestimonialOut])
def list_testimonials(
    approved_only: bool = Query(False),
    service: ClubService = Depends(get_club_service),
):
    items = service.repos.testimonials.list_testimonials()
    if approved_only:
        items = [item for item in items if item.approved]
    return items


@router.post("/testimonials", response_model=TestimonialOut, status_code=201)
def add_testimonial(
    payload: TestimonialCreateRequest,
    user: User = Depends(require_member),
    service: ClubService = Depends(get_club_service),
):
    return service.repos.testimonials.add_testimonial(payload.text, user.name, payload.role)


@router.patch("/testimonials/{testimonial_id}", response_model=TestimonialOut)
def update_testimonial(
    testimonial_id: str,
    payload: TestimonialUpdateRequest,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    testimonials = service.repos.testimonials
    testimonials.update_testimonial(testimonial_id, payload.model_dump(exclude_none=True))
    return testimonials.require(testimonial_id)


@router.post(
    "/testimonials/{testimonial_id}/toggle-approval", response_model=ApprovalResponse
)
def toggle_testimonial_approval(
    testimonial_id: str,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    approved = service.repos.testimonials.toggle_testimonial_approval(testimonial_id)
    return ApprovalResponse(id=testimonial_id, approved=approved)


@router.delete("/testimonials/{testimonial_id}", response_model=StatusResponse)
def delete_testimonial(
    testimonial_id: str,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    service.repos.testimonials.delete_testimonial(testimonial_id)
    return StatusResponse(status="ok")


# --- Page content ---


@router.get("/page-content", response_model=list[PageContentOut])
def list_page_content(service: ClubService = Depends(get_club_service)):
    return service.repos.page_content.list_page_content()


@router.put("/page-content/{content_id}", response_model=PageContentOut)
def update_page_content(
    content_id: str,
    payload: PageContentUpdateRequest,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    page_content = service.repos.page_content
    page_content.update_page_content(content_id, payload.text)
    return page_content.require(content_id)


# --- Resources ---


@router.get("/resources", response_model=list[ResourceOut])
def list_resources(
    _: User = Depends(require_member), service: ClubService = Depends(get_club_service)
):
    return service.repos.resources.list_resources()


@router.post("/resources", response_model=ResourceOut, status_code=201)
def add_resource(
    payload: ResourceCreateRequest,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    return service.repos.resources.add_resource(payload.model_dump())


@router.delete("/resources/{resource_id}", response_model=StatusResponse)
def delete_resource(
    resource_id: str,
    _: User = Depends(require_admin),
    service: ClubService = Depends(get_club_service),
):
    service.repos.resources.delete_resource(resource_id)
    return StatusResponse(status="ok")


# --- Contact ---


@router.post("/contact", response_model=StatusResponse, status_code=202)
def contact(payload: ContactRequest, service: ClubService = Depends(get_club_service)):
    service.send_contact_message(payload.name, payload.email, payload.message)
    return StatusResponse(status="ok")
