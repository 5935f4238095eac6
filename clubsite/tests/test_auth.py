import unittest
from unittest.mock import MagicMock, patch

import requests

from clubsite.auth import (
    FirebaseAuthProvider,
    IdentityResolver,
    LocalAuthProvider,
    Principal,
)
from clubsite.backends import BackendSelector
from clubsite.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    RemoteOperationError,
)
from clubsite.kv_store import InMemoryKeyValueStore
from clubsite.repositories import build_repositories


def sample_users():
    return build_repositories(BackendSelector(None), InMemoryKeyValueStore()).users


def response(status_code, body):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.json.return_value = body
    return resp


class LocalAuthProviderTests(unittest.TestCase):
    def setUp(self):
        self.users = sample_users()
        self.provider = LocalAuthProvider(self.users)

    def test_admin_and_member_demo_secrets(self):
        admin = self.provider.sign_in("admin@folk.com", "admin")
        self.assertEqual(admin.id, "admin1")
        member = self.provider.sign_in("member@folk.com", "member")
        self.assertEqual(member.id, "mem1")
        self.assertEqual(self.provider.sign_in("ion@folk.com", "password").id, "mem2")

    def test_wrong_secret_or_unknown_user_is_rejected(self):
        with self.assertRaises(InvalidCredentialsError):
            self.provider.sign_in("member@folk.com", "admin")
        with self.assertRaises(InvalidCredentialsError):
            self.provider.sign_in("nobody@folk.com", "password")

    def test_session_lifecycle(self):
        principal = self.provider.sign_in("admin@folk.com", "admin")
        self.assertEqual(self.provider.verify_token(principal.token).id, "admin1")
        self.provider.sign_out(principal.token)
        with self.assertRaises(InvalidCredentialsError):
            self.provider.verify_token(principal.token)

    def test_sign_up_creates_member(self):
        principal = self.provider.sign_up("ana@folk.com", "pw", "Ana")
        self.assertEqual(self.users.require(principal.id).role, "member")
        with self.assertRaises(DuplicateEmailError):
            self.provider.sign_up("ana@folk.com", "pw", "Ana again")


class IdentityResolverTests(unittest.TestCase):
    def setUp(self):
        self.users = sample_users()
        self.resolver = IdentityResolver(self.users)

    def test_known_principal_returns_stored_user(self):
        user = self.resolver.resolve(Principal(id="admin1", email="admin@folk.com"))
        self.assertEqual(user.role, "admin")

    def test_unknown_principal_becomes_persisted_member(self):
        user = self.resolver.resolve(Principal(id="fb-123", email="dana@folk.com"))
        self.assertEqual(user.id, "fb-123")
        self.assertEqual(user.name, "dana")
        self.assertEqual(user.role, "member")
        self.assertEqual(self.users.require("fb-123").email, "dana@folk.com")

    def test_display_name_is_preferred(self):
        user = self.resolver.resolve(
            Principal(id="fb-9", email="x@folk.com", display_name="Dana Pop")
        )
        self.assertEqual(user.name, "Dana Pop")


class FirebaseAuthProviderTests(unittest.TestCase):
    def setUp(self):
        self.provider = FirebaseAuthProvider(api_key="key")

    def test_requires_api_key(self):
        with self.assertRaises(ValueError):
            FirebaseAuthProvider(api_key="")

    @patch("clubsite.auth.requests.post")
    def test_sign_in(self, post):
        post.return_value = response(
            200, {"localId": "uid1", "email": "a@folk.com", "idToken": "tok"}
        )
        principal = self.provider.sign_in("a@folk.com", "pw")
        self.assertEqual((principal.id, principal.token), ("uid1", "tok"))
        self.assertIn("signInWithPassword", post.call_args.args[0])
        self.assertEqual(post.call_args.kwargs["params"], {"key": "key"})

    @patch("clubsite.auth.requests.post")
    def test_bad_password(self, post):
        post.return_value = response(400, {"error": {"message": "INVALID_PASSWORD"}})
        with self.assertRaises(InvalidCredentialsError):
            self.provider.sign_in("a@folk.com", "pw")

    @patch("clubsite.auth.requests.post")
    def test_existing_email(self, post):
        post.return_value = response(400, {"error": {"message": "EMAIL_EXISTS"}})
        with self.assertRaises(DuplicateEmailError):
            self.provider.sign_up("a@folk.com", "pw", "A")

    @patch("clubsite.auth.requests.post")
    def test_sign_up_sets_display_name(self, post):
        post.side_effect = [
            response(200, {"localId": "uid1", "email": "a@folk.com", "idToken": "tok"}),
            response(200, {}),
        ]
        principal = self.provider.sign_up("a@folk.com", "pw", "Ana")
        self.assertEqual(principal.display_name, "Ana")
        self.assertEqual(post.call_args.kwargs["json"]["displayName"], "Ana")

    @patch("clubsite.auth.requests.post")
    def test_unreachable_service(self, post):
        post.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(RemoteOperationError):
            self.provider.sign_in("a@folk.com", "pw")

    @patch("clubsite.auth.firebase_auth.verify_id_token")
    def test_verify_token(self, verify):
        verify.return_value = {"uid": "uid1", "email": "a@folk.com", "name": "Ana"}
        principal = self.provider.verify_token("tok")
        self.assertEqual(principal.display_name, "Ana")
        verify.assert_called_once_with("tok", app=None)

    @patch("clubsite.auth.firebase_auth.verify_id_token", side_effect=ValueError("bad"))
    def test_invalid_token(self, _verify):
        with self.assertRaises(InvalidCredentialsError):
            self.provider.verify_token("tok")


if __name__ == "__main__":
    unittest.main()
