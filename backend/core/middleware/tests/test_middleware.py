"""
Tests for custom middleware.
"""

import logging

import pytest
from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse
from django.test import RequestFactory

from core.middleware.audit_log import AuditLogMiddleware
from core.middleware.voter_cookie import VOTER_TOKEN_PATTERN, VoterCookieMiddleware


def echo_token(request):
    return JsonResponse({"voter_token": request.voter_token})


@pytest.mark.unit
class TestVoterCookieMiddleware:
    """Test anonymous voter token issuing."""

    def test_new_visitor_gets_cookie(self, settings):
        settings.VOTER_COOKIE_SECURE = True
        request = RequestFactory().get("/api/v1/polls/")

        response = VoterCookieMiddleware(echo_token)(request)

        cookie = response.cookies["voter_id"]
        assert VOTER_TOKEN_PATTERN.match(cookie.value)
        assert request.voter_token == cookie.value
        assert cookie["httponly"] is True
        assert cookie["samesite"] == "Lax"
        assert cookie["secure"] is True
        assert cookie["max-age"] == settings.VOTER_COOKIE_MAX_AGE

    def test_each_new_visitor_gets_a_distinct_token(self):
        middleware = VoterCookieMiddleware(echo_token)

        first = middleware(RequestFactory().get("/"))
        second = middleware(RequestFactory().get("/"))

        assert first.cookies["voter_id"].value != second.cookies["voter_id"].value

    def test_existing_cookie_is_kept(self):
        request = RequestFactory().get("/api/v1/polls/")
        request.COOKIES["voter_id"] = "returning0000001"

        response = VoterCookieMiddleware(echo_token)(request)

        assert request.voter_token == "returning0000001"
        assert "voter_id" not in response.cookies

    @pytest.mark.parametrize("bad_token", ["short", "has spaces in it", "x" * 65, "semi;colon00000"])
    def test_malformed_cookie_is_replaced(self, bad_token):
        request = RequestFactory().get("/")
        request.COOKIES["voter_id"] = bad_token

        response = VoterCookieMiddleware(echo_token)(request)

        assert request.voter_token != bad_token
        assert response.cookies["voter_id"].value == request.voter_token

    def test_cookie_name_is_configurable(self, settings):
        settings.VOTER_COOKIE_NAME = "lp_voter"
        request = RequestFactory().get("/")
        request.COOKIES["lp_voter"] = "returning0000001"

        response = VoterCookieMiddleware(echo_token)(request)

        assert request.voter_token == "returning0000001"
        assert "lp_voter" not in response.cookies


@pytest.mark.unit
class TestAuditLogMiddleware:
    """Test request audit logging."""

    def test_logs_api_requests(self, caplog):
        middleware = AuditLogMiddleware(lambda req: JsonResponse({"ok": True}, status=201))
        request = RequestFactory().post("/api/v1/polls/", REMOTE_ADDR="203.0.113.9")
        request.user = AnonymousUser()

        with caplog.at_level(logging.INFO, logger="livepoll.audit"):
            middleware(request)

        assert "POST /api/v1/polls/ -> 201" in caplog.text
        assert "ip=203.0.113.9" in caplog.text
        assert "account=-" in caplog.text

    def test_logs_account_id(self, caplog):
        class FakeUser:
            pk = 42
            is_authenticated = True

        middleware = AuditLogMiddleware(lambda req: JsonResponse({"ok": True}))
        request = RequestFactory().get("/api/v1/polls/abc/")
        request.user = FakeUser()

        with caplog.at_level(logging.INFO, logger="livepoll.audit"):
            middleware(request)

        assert "account=42" in caplog.text

    def test_ignores_non_api_paths(self, caplog):
        middleware = AuditLogMiddleware(lambda req: JsonResponse({"ok": True}))

        with caplog.at_level(logging.INFO, logger="livepoll.audit"):
            middleware(RequestFactory().get("/admin/"))

        assert caplog.text == ""

    def test_response_is_passed_through(self):
        middleware = AuditLogMiddleware(lambda req: JsonResponse({"ok": True}, status=418))

        response = middleware(RequestFactory().get("/api/v1/"))

        assert response.status_code == 418
