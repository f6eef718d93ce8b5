"""Tests for the Bitbucket API client and its error mapping."""

import asyncio
import base64
import json

import httpx

from bbagent_core.bb.client import API_HOST, BASE_URL, ApiClient, basic_auth_header
from bbagent_core.bb.results import AuthFailure, Forbidden, GenericApiFailure, NotFound, Ok
from bbagent_store.models import Credentials

CREDS = Credentials(username="alice", api_token="s3cret")


def _call(handler, fn):
    """Run ``fn(client)`` against a client whose requests go to ``handler``."""

    async def go():
        async with ApiClient(CREDS, transport=httpx.MockTransport(handler)) as client:
            return await fn(client)

    return asyncio.run(go())


def _recorder(response):
    calls = []

    def handler(request):
        calls.append(request)
        return response

    return handler, calls


class TestRequests:
    def test_basic_auth_header_sent(self):
        handler, calls = _recorder(httpx.Response(200, json={"display_name": "Alice"}))

        _call(handler, lambda c: c.get("/user"))

        expected = "Basic " + base64.b64encode(b"alice:s3cret").decode()
        assert calls[0].headers["Authorization"] == expected
        assert basic_auth_header("alice", "s3cret") == expected

    def test_path_joined_onto_api_origin(self):
        handler, calls = _recorder(httpx.Response(200, json={}))

        _call(handler, lambda c: c.get("/repositories/ws/repo"))

        assert str(calls[0].url) == f"{BASE_URL}/repositories/ws/repo"

    def test_missing_leading_slash_added(self):
        handler, calls = _recorder(httpx.Response(200, json={}))

        _call(handler, lambda c: c.get("user"))

        assert str(calls[0].url) == f"{BASE_URL}/user"

    def test_json_body_decoded(self):
        handler, _ = _recorder(httpx.Response(200, json={"values": [1, 2]}))

        result = _call(handler, lambda c: c.get("/x"))

        assert result == Ok({"values": [1, 2]})

    def test_text_response_returned_raw(self):
        diff = "diff --git a/x b/x\n+\tindented\n"
        handler, calls = _recorder(httpx.Response(200, text=diff))

        result = _call(handler, lambda c: c.get_text("/diff"))

        assert result == Ok(diff)
        assert calls[0].headers["Accept"] == "text/plain"

    def test_no_content_is_ok_none(self):
        handler, _ = _recorder(httpx.Response(204))

        result = _call(handler, lambda c: c.delete("/thing"))

        assert result == Ok(None)

    def test_post_sends_json_body(self):
        handler, calls = _recorder(httpx.Response(201, json={"id": 1}))

        _call(handler, lambda c: c.post("/comments", {"content": {"raw": "hi"}}))

        assert calls[0].method == "POST"
        assert json.loads(calls[0].content) == {"content": {"raw": "hi"}}

    def test_put_uses_put(self):
        handler, calls = _recorder(httpx.Response(200, json={}))

        _call(handler, lambda c: c.put("/tasks/1", {"state": "RESOLVED"}))

        assert calls[0].method == "PUT"

    def test_invalid_json_is_generic_failure(self):
        handler, _ = _recorder(httpx.Response(200, text="<html>"))

        result = _call(handler, lambda c: c.get("/x"))

        assert isinstance(result, GenericApiFailure)
        assert result.status == 200


class TestErrorMapping:
    def test_401_is_auth_failure(self):
        handler, _ = _recorder(httpx.Response(401))
        assert isinstance(_call(handler, lambda c: c.get("/user")), AuthFailure)

    def test_403_is_forbidden(self):
        handler, _ = _recorder(httpx.Response(403))
        assert isinstance(_call(handler, lambda c: c.get("/x")), Forbidden)

    def test_404_is_not_found(self):
        handler, _ = _recorder(httpx.Response(404))
        assert isinstance(_call(handler, lambda c: c.get("/x")), NotFound)

    def test_other_status_is_generic_with_status(self):
        handler, _ = _recorder(httpx.Response(500, text="boom"))

        result = _call(handler, lambda c: c.get("/x"))

        assert isinstance(result, GenericApiFailure)
        assert result.status == 500
        assert result.message == "Internal Server Error"
        assert result.describe() == "API error 500: Internal Server Error"

    def test_error_envelope_message_used(self):
        handler, _ = _recorder(httpx.Response(400, json={"type": "error", "error": {"message": "Bad branch"}}))

        result = _call(handler, lambda c: c.post("/pullrequests", {}))

        assert result.message == "Bad branch"
        assert result.describe() == "API error 400: Bad branch"

    def test_envelope_without_message_falls_back_to_reason(self):
        handler, _ = _recorder(httpx.Response(404, json={"error": {}}))

        result = _call(handler, lambda c: c.get("/x"))

        assert result.message == "Not Found"

    def test_transport_error_is_generic_without_status(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        result = _call(handler, lambda c: c.get("/x"))

        assert isinstance(result, GenericApiFailure)
        assert result.status is None
        assert "connection refused" in result.describe()


class TestGetUrl:
    def test_follows_url_on_api_host(self):
        handler, calls = _recorder(httpx.Response(200, json={"values": []}))
        url = f"https://{API_HOST}/2.0/repositories/ws/repo/pullrequests/1/comments?page=2"

        result = _call(handler, lambda c: c.get_url(url))

        assert isinstance(result, Ok)
        assert str(calls[0].url) == url

    def test_foreign_host_refused_without_request(self):
        handler, calls = _recorder(httpx.Response(200, json={}))

        result = _call(handler, lambda c: c.get_url("https://evil.example.com/2.0/steal"))

        assert isinstance(result, GenericApiFailure)
        assert "evil.example.com" in result.message
        assert calls == []

    def test_lookalike_host_refused(self):
        handler, calls = _recorder(httpx.Response(200, json={}))

        result = _call(handler, lambda c: c.get_url("https://api.bitbucket.org.evil.com/2.0/x"))

        assert isinstance(result, GenericApiFailure)
        assert calls == []
