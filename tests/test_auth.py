"""Tests for shared-secret token matching."""

from starlette.requests import Request

from backend.auth import presented_tokens, token_matches


def make_request(headers):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestPresentedTokens:
    def test_bearer_then_raw(self):
        request = make_request({"Authorization": "Bearer abc"})
        assert presented_tokens(request) == ["abc", "Bearer abc"]

    def test_x_auth_token(self):
        request = make_request({"X-Auth-Token": "xyz"})
        assert presented_tokens(request) == ["xyz"]

    def test_no_headers(self):
        assert presented_tokens(make_request({})) == []


class TestTokenMatches:
    def test_bearer_match(self):
        assert token_matches(make_request({"Authorization": "Bearer s3cret"}), "s3cret")

    def test_raw_authorization_match(self):
        assert token_matches(make_request({"Authorization": "s3cret"}), "s3cret")

    def test_x_auth_token_match(self):
        assert token_matches(make_request({"X-Auth-Token": "s3cret"}), "s3cret")

    def test_exact_match_only(self):
        assert not token_matches(make_request({"Authorization": "Bearer s3cret "}), "s3cret")
        assert not token_matches(make_request({"Authorization": "bearer s3cret"}), "s3cret")

    def test_empty_secret_rejects_everything(self):
        assert not token_matches(make_request({"Authorization": "Bearer "}), "")
        assert not token_matches(make_request({}), "")
