"""Schemas for the Bitbucket Cloud 2.0 payloads this tool reads.

Only the fields the commands use are declared; anything else the API sends is
ignored. Optional fields default to None so partial payloads (e.g. a PR
without links) still validate.
"""

from __future__ import annotations

from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bbagent_core.bb.results import GenericApiFailure, Ok

T = TypeVar("T")

PullRequestState = Literal["OPEN", "MERGED", "DECLINED", "SUPERSEDED"]
TaskState = Literal["UNRESOLVED", "RESOLVED"]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class User(_Payload):
    display_name: str = ""
    uuid: Optional[str] = None
    nickname: Optional[str] = None
    username: Optional[str] = None
    account_id: Optional[str] = None

    @property
    def handle(self) -> str:
        """Best short name for the user; ``/user`` may omit ``username``."""
        return self.username or self.nickname or self.display_name


class BranchName(_Payload):
    name: str


class BranchRef(_Payload):
    branch: BranchName


class Link(_Payload):
    href: str


class Links(_Payload):
    html: Optional[Link] = None


class Reviewer(_Payload):
    user: User
    approved: bool = False


class PullRequest(_Payload):
    id: int
    title: str
    state: PullRequestState
    author: User
    source: BranchRef
    destination: BranchRef
    created_on: str
    updated_on: str
    description: Optional[str] = None
    comment_count: Optional[int] = None
    task_count: Optional[int] = None
    links: Optional[Links] = None
    reviewers: list[Reviewer] = Field(default_factory=list)

    @property
    def html_url(self) -> str | None:
        if self.links and self.links.html:
            return self.links.html.href
        return None


class Content(_Payload):
    raw: str = ""


class Inline(_Payload):
    path: str
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None

    @property
    def line(self) -> int | None:
        return self.to if self.to is not None else self.from_


class IdRef(_Payload):
    id: int


class Resolution(_Payload):
    type: Optional[str] = None


class Comment(_Payload):
    id: int
    content: Content = Field(default_factory=Content)
    user: User = Field(default_factory=User)
    created_on: str
    updated_on: Optional[str] = None
    inline: Optional[Inline] = None
    parent: Optional[IdRef] = None
    resolution: Optional[Resolution] = None
    deleted: bool = False

    @property
    def parent_id(self) -> int | None:
        return self.parent.id if self.parent else None

    @property
    def resolved(self) -> bool:
        return self.resolution is not None


class Task(_Payload):
    id: int
    state: TaskState
    content: Content = Field(default_factory=Content)
    creator: User = Field(default_factory=User)
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    resolved_on: Optional[str] = None
    resolved_by: Optional[User] = None
    comment: Optional[IdRef] = None

    @property
    def comment_id(self) -> int | None:
        return self.comment.id if self.comment else None


class MainBranch(_Payload):
    name: str
    type: Optional[str] = None


class Repository(_Payload):
    full_name: str = ""
    name: str = ""
    mainbranch: Optional[MainBranch] = None


class Page(_Payload, Generic[T]):
    values: list[T] = Field(default_factory=list)
    page: Optional[int] = None
    pagelen: Optional[int] = None
    size: Optional[int] = None
    next: Optional[str] = None


def parse(model, data):
    """Validate ``data`` against ``model``; a mismatch becomes a GenericApiFailure."""
    try:
        return Ok(model.model_validate(data))
    except ValidationError as exc:
        return GenericApiFailure(f"Unexpected response from API: {exc.error_count()} invalid field(s) for {model.__name__}")
