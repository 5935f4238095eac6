import unittest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from clubsite.app import create_app
from clubsite.auth import LocalAuthProvider
from clubsite.backends import BackendSelector
from clubsite.dependencies import get_club_service
from clubsite.kv_store import InMemoryKeyValueStore
from clubsite.notifications import Notifier
from clubsite.repositories import build_repositories
from clubsite.services import ClubService


class ClubApiTests(unittest.TestCase):
    def setUp(self):
        repos = build_repositories(BackendSelector(None), InMemoryKeyValueStore())
        self.notifier = MagicMock(spec=Notifier)
        self.service = ClubService(repos, self.notifier, LocalAuthProvider(repos.users))
        app = create_app()
        app.dependency_overrides[get_club_service] = lambda: self.service
        self.client = TestClient(app)

    def login(self, email, password):
        response = self.client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        self.assertEqual(response.status_code, 200)
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def admin(self):
        return self.login("admin@folk.com", "admin")

    def member(self):
        return self.login("member@folk.com", "member")

    def test_status_reports_local_backend(self):
        response = self.client.get("/api/status")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["remote_active"])

    def test_events_are_public_and_sorted(self):
        response = self.client.get("/api/events")
        self.assertEqual(response.status_code, 200)
        dates = [e["date"] for e in response.json()]
        self.assertEqual(dates, sorted(dates))

    def test_missing_event_is_404(self):
        self.assertEqual(self.client.get("/api/events/nope").status_code, 404)

    def test_bad_login_is_401(self):
        response = self.client.post(
            "/api/auth/login", json={"email": "admin@folk.com", "password": "member"}
        )
        self.assertEqual(response.status_code, 401)

    def test_register_duplicate_is_409(self):
        payload = {"name": "Ana", "email": "ana@folk.com", "password": "password"}
        self.assertEqual(self.client.post("/api/auth/register", json=payload).status_code, 201)
        self.assertEqual(self.client.post("/api/auth/register", json=payload).status_code, 409)

    def test_me_requires_token(self):
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)
        response = self.client.get("/api/auth/me", headers=self.member())
        self.assertEqual(response.json()["id"], "mem1")

    def test_rsvp_round_trip(self):
        headers = self.member()
        first = self.client.post("/api/events/1/rsvp", headers=headers).json()
        self.assertTrue(first["is_adding"])
        self.assertIn("mem1", first["event"]["attendees"])
        second = self.client.post("/api/events/1/rsvp", headers=headers).json()
        self.assertFalse(second["is_adding"])
        self.assertNotIn("mem1", second["event"]["attendees"])
        self.notifier.rsvp_added.assert_called_once()

    def test_member_cannot_save_event(self):
        response = self.client.put(
            "/api/events",
            json={"title": "X", "date": "2024-06-01"},
            headers=self.member(),
        )
        self.assertEqual(response.status_code, 403)

    def test_admin_saves_event(self):
        response = self.client.put(
            "/api/events",
            json={"title": "Summer Social", "date": "2024-06-01", "type": "social"},
            headers=self.admin(),
        )
        self.assertEqual(response.status_code, 200)
        event_id = response.json()["id"]
        self.assertEqual(self.client.get(f"/api/events/{event_id}").json()["type"], "social")

    def test_member_gallery_upload_waits_for_approval(self):
        response = self.client.post(
            "/api/gallery",
            json={"url": "https://cdn.example.com/p.png", "approved": True},
            headers=self.member(),
        )
        self.assertEqual(response.status_code, 201)
        item = response.json()
        self.assertFalse(item["approved"])
        self.assertEqual(item["uploaded_by"], "mem1")
        public = self.client.get("/api/gallery", params={"approved_only": True}).json()
        self.assertNotIn(item["id"], [i["id"] for i in public])

        toggled = self.client.post(
            f"/api/gallery/{item['id']}/toggle-approval", headers=self.admin()
        )
        self.assertTrue(toggled.json()["approved"])

    def test_testimonial_flow(self):
        created = self.client.post(
            "/api/testimonials", json={"text": "Lovely evening"}, headers=self.member()
        ).json()
        self.assertFalse(created["approved"])
        self.assertEqual(created["author"], "Maria Dan")
        response = self.client.post(
            f"/api/testimonials/{created['id']}/toggle-approval", headers=self.admin()
        )
        self.assertTrue(response.json()["approved"])

    def test_toggle_missing_testimonial_is_404(self):
        response = self.client.post(
            "/api/testimonials/missing/toggle-approval", headers=self.admin()
        )
        self.assertEqual(response.status_code, 404)

    def test_page_content_update(self):
        response = self.client.put(
            "/api/page-content/hero_subtitle",
            json={"text": {"en": "Dance with us"}},
            headers=self.admin(),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["text"], {"en": "Dance with us"})

    def test_unsupported_language_is_400(self):
        response = self.client.put(
            "/api/page-content/hero_subtitle",
            json={"text": {"de": "Hallo"}},
            headers=self.admin(),
        )
        self.assertEqual(response.status_code, 400)

    def test_admin_cannot_change_own_role(self):
        response = self.client.patch(
            "/api/users/admin1/role", json={"role": "member"}, headers=self.admin()
        )
        self.assertEqual(response.status_code, 400)

    def test_admin_promotes_member(self):
        response = self.client.patch(
            "/api/users/mem2/role", json={"role": "admin"}, headers=self.admin()
        )
        self.assertEqual(response.json()["role"], "admin")

    def test_profile_update(self):
        response = self.client.patch(
            "/api/users/me/profile",
            json={"phone_number": "+15195550100"},
            headers=self.member(),
        )
        self.assertEqual(response.json()["phone_number"], "+15195550100")

    def test_null_profile_field_is_ignored(self):
        headers = self.admin()
        response = self.client.patch(
            "/api/users/me/profile", json={"name": None}, headers=headers
        )
        self.assertEqual(response.status_code, 200)
        me = self.client.get("/api/auth/me", headers=headers).json()
        self.assertEqual((me["name"], me["role"]), ("Admin User", "admin"))

    def test_guest_is_kept_out_of_member_actions(self):
        self.service.repos.users.update_user_role("mem2", "guest")
        headers = self.login("ion@folk.com", "password")
        self.assertEqual(self.client.post("/api/events/1/rsvp", headers=headers).status_code, 403)
        self.assertEqual(
            self.client.post(
                "/api/testimonials", json={"text": "Hi"}, headers=headers
            ).status_code,
            403,
        )
        self.assertEqual(
            self.client.post(
                "/api/gallery", json={"url": "https://cdn.example.com/p.png"}, headers=headers
            ).status_code,
            403,
        )
        self.assertEqual(self.client.get("/api/resources", headers=headers).status_code, 403)
        self.assertEqual(self.client.get("/api/auth/me", headers=headers).status_code, 200)
        self.notifier.rsvp_added.assert_not_called()

    def test_contact_is_accepted(self):
        response = self.client.post(
            "/api/contact",
            json={"name": "Ana", "email": "ana@folk.com", "message": "Hello"},
        )
        self.assertEqual(response.status_code, 202)
        self.notifier.contact_received.assert_called_once_with(
            "Ana", "ana@folk.com", "Hello"
        )

    def test_resources_require_login(self):
        self.assertEqual(self.client.get("/api/resources").status_code, 401)
        created = self.client.post(
            "/api/resources",
            json={"title": "Hora steps", "url": "https://x/hora.pdf", "category": "choreography"},
            headers=self.admin(),
        )
        self.assertEqual(created.status_code, 201)
        listed = self.client.get("/api/resources", headers=self.member()).json()
        self.assertEqual([r["title"] for r in listed], ["Hora steps"])


if __name__ == "__main__":
    unittest.main()
