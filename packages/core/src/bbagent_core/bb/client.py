"""Async HTTP client for the Bitbucket Cloud 2.0 REST API.

Every request is authenticated with HTTP Basic auth built from the
username / API token pair. Responses are turned into ``Ok`` or one of the
``ApiFailure`` variants from ``bbagent_core.bb.results``, so callers never need
a try/except around a request.

Paths built by the caller (``/repositories/ws/repo/...``) are joined onto the
fixed API origin. Absolute URLs handed back by the server (pagination
``next`` links) go through ``get_url``, which refuses any host other than
``api.bitbucket.org`` so a crafted link can't make us send credentials
elsewhere.
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import httpx

from bbagent_core.bb.results import ApiResult, AuthFailure, Forbidden, GenericApiFailure, NotFound, Ok

if TYPE_CHECKING:
    from bbagent_store.models import Credentials

logger = logging.getLogger(__name__)

API_HOST = "api.bitbucket.org"
BASE_URL = f"https://{API_HOST}/2.0"


def basic_auth_header(username: str, secret: str) -> str:
    encoded = base64.b64encode(f"{username}:{secret}".encode()).decode("ascii")
    return f"Basic {encoded}"


class ApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` returning tagged results.

    Use as an async context manager so the connection pool is closed:

        async with ApiClient(creds) as client:
            result = await client.get("/user")

    ``transport`` lets tests plug in ``httpx.MockTransport``. ``timeout`` is
    in seconds; None (the default) waits indefinitely.
    """

    def __init__(
        self,
        credentials: Credentials,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        self._http = httpx.AsyncClient(
            headers={
                "Authorization": basic_auth_header(credentials.username, credentials.api_token),
                "Content-Type": "application/json",
            },
            transport=transport,
            timeout=httpx.Timeout(timeout),
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------ #
    # Verbs                                                                #
    # ------------------------------------------------------------------ #

    async def get(self, path: str) -> ApiResult:
        return await self.request("GET", path)

    async def get_text(self, path: str) -> ApiResult:
        return await self.request("GET", path, raw=True)

    async def post(self, path: str, body: Any = None) -> ApiResult:
        return await self.request("POST", path, json_body=body)

    async def put(self, path: str, body: Any = None) -> ApiResult:
        return await self.request("PUT", path, json_body=body)

    async def delete(self, path: str) -> ApiResult:
        return await self.request("DELETE", path)

    async def get_url(self, url: str) -> ApiResult:
        """GET an absolute URL supplied by the server (e.g. a ``next`` link)."""
        host = urlsplit(url).hostname
        if host != API_HOST:
            logger.debug("Refusing to follow URL on host %r", host)
            return GenericApiFailure(f"Invalid URL: requests must be to {API_HOST}, got {host}")
        return await self._send("GET", url)

    async def request(self, method: str, path: str, json_body: Any = None, raw: bool = False) -> ApiResult:
        """Send ``method`` to ``path`` (relative to the API origin)."""
        if not path.startswith("/"):
            path = "/" + path
        return await self._send(method, f"{BASE_URL}{path}", json_body=json_body, raw=raw)

    # ------------------------------------------------------------------ #
    # Internals                                                            #
    # ------------------------------------------------------------------ #

    async def _send(self, method: str, url: str, json_body: Any = None, raw: bool = False) -> ApiResult:
        headers = {"Accept": "text/plain"} if raw else None
        logger.debug("%s %s", method, url)
        try:
            response = await self._http.request(method, url, json=json_body, headers=headers)
        except httpx.HTTPError as exc:
            return GenericApiFailure(f"Request failed: {exc}")

        logger.debug("%s %s -> %d", method, url, response.status_code)
        if not response.is_success:
            return _map_error(response)

        if response.status_code == 204 or not response.content:
            return Ok(None)
        if raw:
            return Ok(response.text)
        try:
            return Ok(response.json())
        except ValueError:
            return GenericApiFailure("Invalid JSON in API response", status=response.status_code)


def _error_message(response: httpx.Response) -> str:
    """Pull ``error.message`` out of the response, else use the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if message:
            return str(message)
    return response.reason_phrase


def _map_error(response: httpx.Response) -> ApiResult:
    message = _error_message(response)
    status = response.status_code
    if status == 401:
        return AuthFailure(message)
    if status == 403:
        return Forbidden(message)
    if status == 404:
        return NotFound(message)
    return GenericApiFailure(message, status=status)
