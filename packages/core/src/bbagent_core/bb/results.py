"""Tagged results returned by every Bitbucket API call.

The client never raises for HTTP or transport problems. Each call returns
either ``Ok(value)`` or one of the ``ApiFailure`` variants below, and the CLI
layer decides what each variant means for the user (message + exit code).

    result = await client.get("/user")
    if isinstance(result, ApiFailure):
        ...  # AuthFailure / Forbidden / NotFound / GenericApiFailure
    user = result.value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful call and its decoded payload (``None`` for empty bodies)."""

    value: T


@dataclass(frozen=True)
class ApiFailure:
    """Base class for every failure variant."""

    message: str

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True)
class AuthFailure(ApiFailure):
    """HTTP 401: credentials missing or rejected."""


@dataclass(frozen=True)
class Forbidden(ApiFailure):
    """HTTP 403: credentials valid but not allowed to touch the resource."""


@dataclass(frozen=True)
class NotFound(ApiFailure):
    """HTTP 404."""


@dataclass(frozen=True)
class GenericApiFailure(ApiFailure):
    """Anything else: other status codes, transport errors, bad payloads.

    ``status`` is None when no HTTP response was involved (connection errors,
    the pagination host guard, schema mismatches on a 2xx body).
    """

    status: int | None = None

    def describe(self) -> str:
        if self.status is None:
            return self.message
        return f"API error {self.status}: {self.message}"


ApiResult = Union[Ok[Any], ApiFailure]
