"""Tests for cursor pagination."""

import asyncio

import httpx
import pytest

from bbagent_core.bb.client import BASE_URL, ApiClient
from bbagent_core.bb.models import Comment
from bbagent_core.bb.pagination import fetch_all_pages
from bbagent_core.bb.results import GenericApiFailure, Ok
from bbagent_store.models import Credentials

PATH = "/repositories/ws/repo/pullrequests/1/comments"


def _comment(comment_id):
    return {"id": comment_id, "created_on": "2024-01-01T00:00:00+00:00", "content": {"raw": f"c{comment_id}"}}


def _paged_handler(pages, calls, next_base=f"{BASE_URL}{PATH}"):
    """Serve ``pages`` (lists of ids) as a chain of ``?page=N`` links."""

    def handler(request):
        calls.append(str(request.url))
        index = int(request.url.params.get("page", "1")) - 1
        body = {"values": [_comment(i) for i in pages[index]], "page": index + 1, "pagelen": 2}
        if index + 1 < len(pages):
            body["next"] = f"{next_base}?page={index + 2}"
        return httpx.Response(200, json=body)

    return handler


def _fetch(handler):
    async def go():
        async with ApiClient(Credentials("alice", "tok"), transport=httpx.MockTransport(handler)) as client:
            return await fetch_all_pages(client, PATH, Comment)

    return asyncio.run(go())


class TestFetchAllPages:
    @pytest.mark.parametrize(
        "pages",
        [
            [[]],
            [[1, 2]],
            [[1, 2], [3, 4], [5]],
            [[1], [], [2, 3]],
        ],
    )
    def test_concatenates_every_page_in_order(self, pages):
        calls = []

        result = _fetch(_paged_handler(pages, calls))

        assert isinstance(result, Ok)
        expected = [i for page in pages for i in page]
        assert [c.id for c in result.value] == expected
        assert len(calls) == len(pages)

    def test_items_are_parsed_models(self):
        result = _fetch(_paged_handler([[7]], []))

        assert isinstance(result.value[0], Comment)
        assert result.value[0].content.raw == "c7"

    def test_first_page_uses_path_then_absolute_next(self):
        calls = []

        _fetch(_paged_handler([[1], [2]], calls))

        assert calls[0] == f"{BASE_URL}{PATH}"
        assert calls[1] == f"{BASE_URL}{PATH}?page=2"

    def test_next_link_to_other_host_fails_closed(self):
        calls = []

        result = _fetch(_paged_handler([[1], [2]], calls, next_base="https://evil.example.com/steal"))

        assert isinstance(result, GenericApiFailure)
        assert "evil.example.com" in result.message
        assert len(calls) == 1

    def test_error_on_later_page_stops_pagination(self):
        calls = []

        def handler(request):
            calls.append(request)
            if request.url.params.get("page") == "2":
                return httpx.Response(500)
            return httpx.Response(200, json={"values": [_comment(1)], "next": f"{BASE_URL}{PATH}?page=2"})

        result = _fetch(handler)

        assert isinstance(result, GenericApiFailure)
        assert result.status == 500
        assert len(calls) == 2

    def test_malformed_page_is_generic_failure(self):
        result = _fetch(lambda request: httpx.Response(200, json={"values": "not-a-list"}))

        assert isinstance(result, GenericApiFailure)
        assert result.status is None

    def test_unknown_fields_ignored(self):
        def handler(request):
            item = _comment(1) | {"links": {"self": {"href": "x"}}, "type": "pullrequest_comment"}
            return httpx.Response(200, json={"values": [item], "size": 1, "extra": True})

        result = _fetch(handler)

        assert [c.id for c in result.value] == [1]
