import threading
import unittest
from unittest.mock import MagicMock, patch

import requests

from clubsite.config import Settings
from clubsite.models import Event, User
from clubsite.notifications import (
    EMAILJS_SEND_URL,
    EmailJsTransport,
    LoggingTransport,
    NotificationDispatcher,
    Notifier,
    TwilioSmsTransport,
)


class DispatcherTests(unittest.TestCase):
    def setUp(self):
        self.dispatcher = NotificationDispatcher(max_workers=1)

    def tearDown(self):
        self.dispatcher.shutdown()

    def test_failure_is_logged_and_swallowed(self):
        def broken():
            raise RuntimeError("smtp down")

        with self.assertLogs("clubsite.notifications", level="ERROR"):
            future = self.dispatcher.submit(broken)
            self.assertFalse(future.result(timeout=5))

    def test_submit_does_not_wait_for_job(self):
        release = threading.Event()
        future = self.dispatcher.submit(release.wait, 5)
        self.assertFalse(future.done())
        release.set()
        self.assertTrue(future.result(timeout=5))


class TransportTests(unittest.TestCase):
    @patch("clubsite.notifications.requests.post")
    def test_emailjs_payload(self, post):
        EmailJsTransport(service_id="svc", public_key="pub").send("tpl", {"a": 1})
        args, kwargs = post.call_args
        self.assertEqual(args[0], EMAILJS_SEND_URL)
        self.assertEqual(kwargs["json"]["service_id"], "svc")
        self.assertEqual(kwargs["json"]["template_id"], "tpl")
        self.assertEqual(kwargs["json"]["template_params"], {"a": 1})
        post.return_value.raise_for_status.assert_called_once()

    @patch("clubsite.notifications.requests.post")
    def test_twilio_error_propagates(self, post):
        post.return_value.raise_for_status.side_effect = requests.HTTPError("401")
        transport = TwilioSmsTransport("AC1", "secret", "+100")
        with self.assertRaises(requests.HTTPError):
            transport.send("+200", "hi")
        self.assertIn("AC1", post.call_args.args[0])
        self.assertEqual(post.call_args.kwargs["auth"], ("AC1", "secret"))


class NotifierTests(unittest.TestCase):
    def setUp(self):
        self.email = LoggingTransport()
        self.sms = LoggingTransport()
        self.dispatcher = MagicMock(spec=NotificationDispatcher)
        self.notifier = Notifier(
            self.email, self.sms, self.dispatcher, club_name="Hora Club"
        )
        self.event = Event(
            id="1", title="Spring Festival", date="2024-03-15", time="14:00", location="Hall"
        )

    def test_rsvp_confirmation_without_phone_skips_sms(self):
        user = User(id="u1", name="Ana", email="ana@folk.com")
        self.notifier.send_rsvp_confirmation(user, self.event)
        self.assertEqual(len(self.email.sent), 1)
        template_id, params = self.email.sent[0]
        self.assertEqual(template_id, "rsvp")
        self.assertEqual(params["event_name"], "Spring Festival")
        self.assertEqual(self.sms.sent, [])

    def test_rsvp_confirmation_with_phone_sends_sms(self):
        user = User(id="u1", name="Ana", email="ana@folk.com", phone_number="+40722")
        self.notifier.send_rsvp_confirmation(user, self.event)
        to_number, body = self.sms.sent[0]
        self.assertEqual(to_number, "+40722")
        self.assertIn("Hora Club", body)
        self.assertIn("Spring Festival", body)

    def test_confirm_rsvp_for_unknown_user_sends_nothing(self):
        self.notifier.confirm_rsvp(self.event, lambda: None)
        self.assertEqual(self.email.sent, [])

    def test_rsvp_job_looks_up_user(self):
        user = User(id="u1", name="Ana", email="ana@folk.com")
        self.notifier.rsvp_added(self.event, lambda: user)
        job, event, load_user = self.dispatcher.submit.call_args.args
        self.assertEqual(job, self.notifier.confirm_rsvp)
        job(event, load_user)
        self.assertEqual(self.email.sent[0][1]["to_email"], "ana@folk.com")

    def test_failing_user_lookup_stays_inside_the_job(self):
        dispatcher = NotificationDispatcher(max_workers=1)
        self.addCleanup(dispatcher.shutdown)
        notifier = Notifier(self.email, self.sms, dispatcher)

        def lookup_fails():
            raise RuntimeError("document store unavailable")

        with self.assertLogs("clubsite.notifications", level="ERROR"):
            future = notifier.rsvp_added(self.event, lookup_fails)
            self.assertFalse(future.result(timeout=5))
        self.assertEqual(self.email.sent, [])

    def test_events_are_handed_to_dispatcher(self):
        self.notifier.contact_received("Ana", "ana@folk.com", "Hi")
        self.dispatcher.submit.assert_called_once_with(
            self.notifier.send_contact_email, "Ana", "ana@folk.com", "Hi"
        )

    def test_from_settings_without_keys_logs_only(self):
        notifier = Notifier.from_settings(Settings(_env_file=None), self.dispatcher)
        self.assertIsInstance(notifier.email, LoggingTransport)
        self.assertIsInstance(notifier.sms, LoggingTransport)


if __name__ == "__main__":
    unittest.main()
