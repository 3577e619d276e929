"""
Fast2SMS client: never raises, reports failures in SmsResult.
"""
from datetime import date
from unittest import mock

import requests
from django.test import TestCase, override_settings
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from core.models import Institute
from notifications.sms import SmsResult, send_absence_notification, send_sms


def fake_response(json_data, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    else:
        response.raise_for_status.return_value = None
    return response


@override_settings(FAST2SMS_API_KEY="key-123", FAST2SMS_SENDER_ID="TXTIND", SMS_TIMEOUT_SECONDS=5)
class SendSmsTests(TestCase):
    @mock.patch("notifications.sms.requests.post")
    def test_success(self, post):
        post.return_value = fake_response({"return": True, "request_id": "abc"})
        result = send_sms("9123456780", "hello")
        self.assertTrue(result.success)
        self.assertEqual(result.data["request_id"], "abc")

        kwargs = post.call_args.kwargs
        self.assertEqual(kwargs["headers"]["authorization"], "key-123")
        self.assertEqual(kwargs["json"]["numbers"], "9123456780")
        self.assertEqual(kwargs["json"]["route"], "v3")
        self.assertEqual(kwargs["timeout"], 5)

    @mock.patch("notifications.sms.requests.post", side_effect=requests.Timeout("timed out"))
    def test_timeout_is_reported_not_raised(self, post):
        result = send_sms("9123456780", "hello")
        self.assertFalse(result.success)
        self.assertIn("timed out", result.error)

    @mock.patch("notifications.sms.requests.post")
    def test_http_error(self, post):
        post.return_value = fake_response({}, status_code=401)
        result = send_sms("9123456780", "hello")
        self.assertFalse(result.success)

    @mock.patch("notifications.sms.requests.post")
    def test_provider_rejection(self, post):
        post.return_value = fake_response({"return": False, "message": "Invalid Numbers"})
        result = send_sms("9123456780", "hello")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Invalid Numbers")

    @override_settings(FAST2SMS_API_KEY="")
    @mock.patch("notifications.sms.requests.post")
    def test_missing_key_skips_request(self, post):
        result = send_sms("9123456780", "hello")
        self.assertFalse(result.success)
        post.assert_not_called()

    @mock.patch("notifications.sms.send_sms", return_value=SmsResult(success=True))
    def test_absence_message(self, send):
        send_absence_notification("Riya", "9123456780", date(2025, 3, 5), "ABC Classes")
        number, message = send.call_args.args
        self.assertEqual(number, "9123456780")
        self.assertIn("Riya is absent from ABC Classes today (05/03/2025)", message)


class TestSmsEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        institute = Institute.objects.create(
            name="ABC Classes", code="ABC1", contact_number="9876543210", email="abc@test.in", owner_name="Owner",
        )
        owner = User.objects.create_user(email="owner@abc.in", password="pass123", full_name="Owner", institute=institute)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(owner)}")

    def test_disabled_returns_503(self):
        res = self.client.post("/api/notifications/test-sms", {"phoneNumber": "9123456780"}, format="json")
        self.assertEqual(res.status_code, 503)
        self.assertEqual(res.data["code"], "sms_disabled")

    @override_settings(SMS_ENABLED=True)
    def test_enabled_sends(self):
        with mock.patch("notifications.views.send_sms", return_value=SmsResult(success=True, data={"return": True})) as send:
            res = self.client.post("/api/notifications/test-sms", {"phoneNumber": "9123456780"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        send.assert_called_once()

    @override_settings(SMS_ENABLED=True)
    def test_enabled_failure_returns_502(self):
        with mock.patch("notifications.views.send_sms", return_value=SmsResult(success=False, error="down")):
            res = self.client.post("/api/notifications/test-sms", {"phoneNumber": "9123456780"}, format="json")
        self.assertEqual(res.status_code, 502)
        self.assertEqual(res.data["error"], "down")

    def test_phone_number_required(self):
        res = self.client.post("/api/notifications/test-sms", {}, format="json")
        self.assertEqual(res.status_code, 400)
