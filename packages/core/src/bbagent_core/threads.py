"""Rebuilding comment threads and their tasks from the flat API lists.

Bitbucket returns a PR's comments as one flat, paginated list in which
replies point at their parent by id, and tasks as a second list in which a
task may point at the comment it hangs off. ``build_threads`` groups both
lists; ``iter_thread`` walks the result depth-first; the two renderers turn it
into the text transcript or the flat JSON record.

Deleted comments take part in the grouping (their replies stay attached to
them) but are never emitted or counted. A reply whose parent is not in the
fetched set at all is unreachable from any root and therefore does not show
up in the transcript; it is still listed in the JSON record.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator

from bbagent_core.bb.models import Comment, Task
from bbagent_core.utils.timestamps import format_timestamp


@dataclass
class CommentThreads:
    """Comments and tasks of one PR, grouped for rendering."""

    comments: list[Comment]
    children: dict[int | None, list[Comment]]
    tasks_by_comment: dict[int, list[Task]]
    standalone_tasks: list[Task] = field(default_factory=list)

    @property
    def active(self) -> list[Comment]:
        return [c for c in self.comments if not c.deleted]

    @property
    def total(self) -> int:
        return len(self.active)

    @property
    def resolved(self) -> int:
        return sum(1 for c in self.active if c.resolved)

    @property
    def unresolved(self) -> int:
        return self.total - self.resolved

    def tasks_for(self, comment_id: int) -> list[Task]:
        return self.tasks_by_comment.get(comment_id, [])

    def visible_tasks(self) -> list[Task]:
        """Tasks attached to a non-deleted comment, at any depth."""
        return [task for c in self.active for task in self.tasks_for(c.id)]

    @property
    def task_total(self) -> int:
        return len(self.visible_tasks())

    @property
    def task_resolved(self) -> int:
        return sum(1 for t in self.visible_tasks() if t.state == "RESOLVED")


def build_threads(comments: list[Comment], tasks: list[Task]) -> CommentThreads:
    tasks_by_comment: dict[int, list[Task]] = defaultdict(list)
    standalone: list[Task] = []
    for task in tasks:
        if task.comment_id is None:
            standalone.append(task)
        else:
            tasks_by_comment[task.comment_id].append(task)

    # Grouped over every comment, deleted ones included, so replies to a
    # deleted comment keep their place in the tree.
    children: dict[int | None, list[Comment]] = defaultdict(list)
    for comment in comments:
        children[comment.parent_id].append(comment)

    return CommentThreads(
        comments=list(comments),
        children=dict(children),
        tasks_by_comment=dict(tasks_by_comment),
        standalone_tasks=standalone,
    )


def iter_thread(threads: CommentThreads) -> Iterator[tuple[Comment, int]]:
    """Yield ``(comment, depth)`` depth-first, siblings in fetch order.

    Uses an explicit stack so arbitrarily deep reply chains don't hit the
    recursion limit. Deleted comments are skipped but their replies are not.
    """
    stack = [(c, 0) for c in reversed(threads.children.get(None, []))]
    while stack:
        comment, depth = stack.pop()
        if not comment.deleted:
            yield comment, depth
        for child in reversed(threads.children.get(comment.id, [])):
            stack.append((child, depth + 1))


def render_threads_text(pr_id: int, threads: CommentThreads, now: datetime | None = None) -> str:
    if threads.total == 0:
        return f"No comments on PR #{pr_id}"

    lines = [
        f"Comments on PR #{pr_id} ({threads.total} total, {threads.resolved} resolved, "
        f"{threads.unresolved} unresolved)"
    ]
    if threads.task_total > 0:
        lines.append(f"Tasks: {threads.task_resolved}/{threads.task_total} resolved")
    lines.append("")

    for comment, depth in iter_thread(threads):
        indent = "  " * depth
        header = f"{indent}[#{comment.id}] {comment.user.display_name} ({format_timestamp(comment.created_on, now)})"
        if comment.resolved:
            header += " [RESOLVED]"
        if comment.inline is not None:
            line = comment.inline.line
            header += f" {comment.inline.path}:{line}" if line is not None else f" {comment.inline.path}"
        lines.append(header)

        for body_line in comment.content.raw.splitlines() or [""]:
            lines.append(f"{indent}  {body_line}")

        for task in threads.tasks_for(comment.id):
            marker = "[x]" if task.state == "RESOLVED" else "[ ]"
            lines.append(f"{indent}  {marker} Task #{task.id}: {task.content.raw}")

        lines.append("")

    return "\n".join(line.rstrip() for line in lines).rstrip()


def task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "state": task.state,
        "content": task.content.raw,
        "creator": task.creator.display_name,
    }


def comment_to_dict(comment: Comment, tasks: list[Task]) -> dict:
    return {
        "id": comment.id,
        "parent": comment.parent_id,
        "author": comment.user.display_name,
        "content": comment.content.raw,
        "created": comment.created_on,
        "resolved": comment.resolved,
        "file": comment.inline.path if comment.inline else None,
        "line": comment.inline.line if comment.inline else None,
        "tasks": [task_to_dict(t) for t in tasks],
    }


def threads_to_dict(threads: CommentThreads) -> dict:
    """Flat JSON record; consumers rebuild the tree from each ``parent``."""
    return {
        "total": threads.total,
        "resolved": threads.resolved,
        "unresolved": threads.unresolved,
        "comments": [comment_to_dict(c, threads.tasks_for(c.id)) for c in threads.active],
    }
