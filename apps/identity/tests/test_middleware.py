"""
Tests for IdentityMiddleware: credential extraction, verification failures
and request scoping of the resolved principal.
"""
from datetime import datetime, timedelta, timezone
from unittest import mock
from uuid import uuid4

from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase, override_settings

from apps.core.exceptions import InvalidCredential
from apps.identity.dtos import Principal
from apps.identity.middleware import IdentityMiddleware, extract_token
from apps.identity.session_tokens import Credential


def make_credential(subject, email="user@example.com", name="User Name"):
    now = datetime.now(timezone.utc)
    return Credential(
        subject=subject,
        email=email,
        display_name=name,
        issuer="taskshare",
        issued_at=now,
        expires_at=now + timedelta(days=7),
    )


@override_settings(AUTH_COOKIE_NAME="APP_AUTH")
class IdentityMiddlewareTest(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.token_service = mock.Mock()
        self.seen = []

        def view(request):
            self.seen.append(getattr(request, 'principal', 'missing'))
            return HttpResponse("ok")

        self.middleware = IdentityMiddleware(view, token_service=self.token_service)

    def test_authenticates_from_authorization_header(self):
        user_id = uuid4()
        self.token_service.verify.return_value = make_credential(str(user_id))
        request = self.factory.get("/", HTTP_AUTHORIZATION="Bearer jwt-abc")

        self.middleware(request)

        self.token_service.verify.assert_called_once_with("jwt-abc")
        self.assertEqual(
            self.seen[0],
            Principal(user_id=user_id, email="user@example.com", display_name="User Name"),
        )

    def test_bearer_scheme_is_case_insensitive(self):
        user_id = uuid4()
        self.token_service.verify.return_value = make_credential(str(user_id))
        request = self.factory.get("/", HTTP_AUTHORIZATION="bearer jwt-abc")

        self.middleware(request)

        self.assertEqual(self.seen[0].user_id, user_id)

    def test_authenticates_from_cookie(self):
        user_id = uuid4()
        self.token_service.verify.return_value = make_credential(str(user_id), "cookie@ex.com", "Cookie User")
        request = self.factory.get("/")
        request.COOKIES["APP_AUTH"] = "jwt-from-cookie"

        self.middleware(request)

        self.token_service.verify.assert_called_once_with("jwt-from-cookie")
        self.assertEqual(self.seen[0].email, "cookie@ex.com")
        self.assertEqual(self.seen[0].display_name, "Cookie User")

    def test_header_takes_precedence_over_cookie(self):
        self.token_service.verify.return_value = make_credential(str(uuid4()))
        request = self.factory.get("/", HTTP_AUTHORIZATION="Bearer from-header")
        request.COOKIES["APP_AUTH"] = "from-cookie"

        self.middleware(request)

        self.token_service.verify.assert_called_once_with("from-header")

    def test_non_bearer_authorization_is_ignored(self):
        request = self.factory.get("/", HTTP_AUTHORIZATION="Basic abcdef")

        self.middleware(request)

        self.token_service.verify.assert_not_called()
        self.assertIsNone(self.seen[0])

    def test_no_token_leaves_request_anonymous(self):
        self.middleware(self.factory.get("/"))

        self.token_service.verify.assert_not_called()
        self.assertIsNone(self.seen[0])

    def test_invalid_token_leaves_request_anonymous(self):
        self.token_service.verify.side_effect = InvalidCredential("jwt invalid")
        request = self.factory.get("/", HTTP_AUTHORIZATION="Bearer bad")

        response = self.middleware(request)

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.seen[0])

    def test_unexpected_verifier_error_leaves_request_anonymous(self):
        self.token_service.verify.side_effect = RuntimeError("boom")
        request = self.factory.get("/", HTTP_AUTHORIZATION="Bearer bad")

        response = self.middleware(request)

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.seen[0])

    def test_missing_subject_leaves_request_anonymous(self):
        self.token_service.verify.return_value = make_credential(None)
        self.middleware(self.factory.get("/", HTTP_AUTHORIZATION="Bearer no-sub"))
        self.assertIsNone(self.seen[0])

    def test_non_uuid_subject_leaves_request_anonymous(self):
        self.token_service.verify.return_value = make_credential("not-a-uuid")
        self.middleware(self.factory.get("/", HTTP_AUTHORIZATION="Bearer bad-sub"))
        self.assertIsNone(self.seen[0])

    def test_stale_principal_is_replaced(self):
        request = self.factory.get("/")
        request.principal = Principal(user_id=uuid4(), email="pre@set", display_name="Pre")

        self.middleware(request)

        self.assertIsNone(self.seen[0])

    def test_principal_removed_after_response(self):
        self.token_service.verify.return_value = make_credential(str(uuid4()))
        request = self.factory.get("/", HTTP_AUTHORIZATION="Bearer jwt-abc")

        self.middleware(request)

        self.assertIsNotNone(self.seen[0])
        self.assertFalse(hasattr(request, 'principal'))


@override_settings(AUTH_COOKIE_NAME="APP_AUTH")
class ExtractTokenTest(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def test_empty_bearer_falls_back_to_cookie(self):
        request = self.factory.get("/", HTTP_AUTHORIZATION="Bearer   ")
        request.COOKIES["APP_AUTH"] = "cookie-token"
        self.assertEqual(extract_token(request), "cookie-token")

    def test_nothing_present(self):
        self.assertIsNone(extract_token(self.factory.get("/")))
