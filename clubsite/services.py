"""
Operations that span repositories or trigger side effects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Optional

import requests

from clubsite.auth import AuthProvider, IdentityResolver, Principal
from clubsite.errors import RemoteOperationError
from clubsite.instagram import fetch_instagram_posts, post_to_gallery_fields
from clubsite.models import ContactMessage, Event, GalleryItem, User
from clubsite.notifications import Notifier
from clubsite.repositories import Repositories

logger = logging.getLogger(__name__)


@dataclass
class RsvpResult:
    is_adding: bool
    event: Event


@dataclass
class Session:
    user: User
    token: Optional[str]


class ClubService:
    def __init__(
        self,
        repos: Repositories,
        notifier: Notifier,
        auth: AuthProvider,
        instagram_access_token: Optional[str] = None,
        instagram_import: bool = False,
    ):
        self.repos = repos
        self.notifier = notifier
        self.auth = auth
        self.identity = IdentityResolver(repos.users)
        self.instagram_access_token = instagram_access_token
        self.instagram_import = instagram_import

    def rsvp_event(self, event_id: str, user_id: str) -> RsvpResult:
        """
        Toggle the user's RSVP. Only the add transition sends a confirmation;
        the notification (including the user lookup) is scheduled after the
        write and never awaited.
        """
        is_adding, event = self.repos.events.toggle_rsvp(event_id, user_id)
        if is_adding:
            self.notifier.rsvp_added(event, partial(self.repos.users.get, user_id))
        return RsvpResult(is_adding=is_adding, event=event)

    def send_contact_message(self, name: str, email: str, message: str) -> ContactMessage:
        saved = self.repos.messages.save_message(name, email, message)
        self.notifier.contact_received(name, email, message)
        return saved

    def sync_instagram(self) -> list[GalleryItem]:
        """
        Pull recent Instagram posts. Posts are only added to the gallery when
        importing is enabled; otherwise the fetch is a connectivity check.
        """
        gallery = self.repos.gallery
        if not self.instagram_access_token:
            logger.warning("Instagram access token missing; nothing to sync")
            return gallery.list()
        try:
            posts = fetch_instagram_posts(self.instagram_access_token)
        except requests.RequestException as e:
            raise RemoteOperationError(f"Instagram fetch failed: {e}") from e
        if not self.instagram_import:
            logger.info("Instagram import disabled; %d posts not integrated", len(posts))
            return gallery.list()
        known_urls = {item.url for item in gallery.list()}
        added = 0
        for post in posts:
            if not post.get("media_url") or post["media_url"] in known_urls:
                continue
            gallery.add_gallery_item(post_to_gallery_fields(post))
            known_urls.add(post["media_url"])
            added += 1
        logger.info("Imported %d new Instagram posts", added)
        return gallery.list()

    def register(self, name: str, email: str, secret: str) -> Session:
        principal = self.auth.sign_up(email, secret, name)
        return self._session(principal)

    def sign_in(self, email: str, secret: str) -> Session:
        return self._session(self.auth.sign_in(email, secret))

    def sign_out(self, token: str) -> None:
        self.auth.sign_out(token)

    def resolve_identity(self, principal: Principal) -> User:
        return self.identity.resolve(principal)

    def _session(self, principal: Principal) -> Session:
        return Session(user=self.identity.resolve(principal), token=principal.token)
