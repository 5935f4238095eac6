import unittest
from unittest.mock import MagicMock, patch

import requests

from clubsite.auth import LocalAuthProvider
from clubsite.backends import BackendSelector
from clubsite.errors import RemoteOperationError
from clubsite.kv_store import InMemoryKeyValueStore
from clubsite.notifications import Notifier
from clubsite.repositories import build_repositories
from clubsite.services import ClubService


def make_service(**kwargs):
    repos = build_repositories(
        BackendSelector(None), InMemoryKeyValueStore(), with_samples=False
    )
    notifier = MagicMock(spec=Notifier)
    service = ClubService(repos, notifier, LocalAuthProvider(repos.users), **kwargs)
    return service, repos, notifier


class RsvpTests(unittest.TestCase):
    def setUp(self):
        self.service, self.repos, self.notifier = make_service()
        self.user = self.repos.users.register_user("Ana", "ana@folk.com")
        self.event = self.repos.events.save_event(
            {"title": "Hora night", "date": "2024-05-01", "time": "19:00"}
        )

    def test_adding_rsvp_sends_confirmation(self):
        result = self.service.rsvp_event(self.event.id, self.user.id)
        self.assertTrue(result.is_adding)
        self.assertEqual(result.event.attendees, [self.user.id])
        self.notifier.rsvp_added.assert_called_once()
        event, load_user = self.notifier.rsvp_added.call_args.args
        self.assertEqual(event.id, self.event.id)
        self.assertEqual(load_user().id, self.user.id)

    def test_removing_rsvp_sends_nothing(self):
        self.service.rsvp_event(self.event.id, self.user.id)
        self.notifier.reset_mock()
        result = self.service.rsvp_event(self.event.id, self.user.id)
        self.assertFalse(result.is_adding)
        self.assertEqual(result.event.attendees, [])
        self.notifier.rsvp_added.assert_not_called()

    def test_user_lookup_is_left_to_the_notification_job(self):
        with patch.object(
            self.repos.users, "get", side_effect=RemoteOperationError("unavailable")
        ) as get_user:
            result = self.service.rsvp_event(self.event.id, self.user.id)
        self.assertTrue(result.is_adding)
        get_user.assert_not_called()
        self.notifier.rsvp_added.assert_called_once()


class ContactTests(unittest.TestCase):
    def test_message_is_saved_then_relayed(self):
        service, repos, notifier = make_service()
        saved = service.send_contact_message("Ana", "ana@folk.com", "Hello")
        self.assertEqual(saved.message, "Hello")
        notifier.contact_received.assert_called_once_with("Ana", "ana@folk.com", "Hello")


class InstagramSyncTests(unittest.TestCase):
    POSTS = [
        {"id": "1", "media_type": "IMAGE", "media_url": "https://ig/1.jpg", "caption": "Dance"},
        {"id": "2", "media_type": "VIDEO", "media_url": "https://ig/2.mp4"},
        {"id": "3", "media_type": "IMAGE"},
    ]

    def test_missing_token_returns_current_gallery(self):
        service, repos, _ = make_service()
        repos.gallery.add_gallery_item({"url": "https://cdn/a.png"})
        with patch("clubsite.services.fetch_instagram_posts") as fetch:
            items = service.sync_instagram()
        fetch.assert_not_called()
        self.assertEqual(len(items), 1)

    def test_fetch_without_import_changes_nothing(self):
        service, repos, _ = make_service(instagram_access_token="tok")
        with patch("clubsite.services.fetch_instagram_posts", return_value=self.POSTS):
            items = service.sync_instagram()
        self.assertEqual(items, [])

    def test_import_adds_new_posts_once(self):
        service, repos, _ = make_service(
            instagram_access_token="tok", instagram_import=True
        )
        with patch("clubsite.services.fetch_instagram_posts", return_value=self.POSTS):
            service.sync_instagram()
            items = service.sync_instagram()
        self.assertEqual(len(items), 2)
        by_url = {item.url: item for item in items}
        self.assertEqual(by_url["https://ig/2.mp4"].type, "video")
        self.assertEqual(by_url["https://ig/2.mp4"].caption, "Instagram Post")
        self.assertEqual(by_url["https://ig/1.jpg"].source, "instagram")

    def test_fetch_failure_is_reported(self):
        service, _, _ = make_service(instagram_access_token="tok")
        with patch(
            "clubsite.services.fetch_instagram_posts",
            side_effect=requests.ConnectionError("down"),
        ):
            with self.assertRaises(RemoteOperationError):
                service.sync_instagram()


class SessionTests(unittest.TestCase):
    def test_register_then_sign_in(self):
        service, repos, _ = make_service()
        session = service.register("Ana Radu", "ana@folk.com", "password")
        self.assertEqual(session.user.role, "member")
        self.assertTrue(session.token)
        again = service.sign_in("ana@folk.com", "password")
        self.assertEqual(again.user.id, session.user.id)


if __name__ == "__main__":
    unittest.main()
