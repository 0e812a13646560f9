"""Sticky PR comment management.

One comment per PR is identified by a START/END HTML marker pair derived from
(header, prefix). Markers are recomputed on every call; nothing is cached
between runs, the comment body itself is the only state.
"""
from __future__ import annotations

import re
import sys
from typing import Protocol

from docs_preview.github import CommentPage, IssueComment, split_repo

DEFAULT_HEADER = "docs-preview"
DEFAULT_PREFIX = "action"
DEFAULT_HIDE_CLASSIFIER = "OUTDATED"

# Upper bound on pages walked by find_previous_comment (100 comments each).
MAX_COMMENT_PAGES = 50

_BOT_SUFFIX_RE = re.compile(r"\[bot\]$", re.IGNORECASE)
_DETAILS_OPEN_RE = re.compile(r"(<details.*?)\s*\bopen\b(.*>)")


class CommentStore(Protocol):
    def comments_page(self, owner: str, name: str, number: int, after: str | None) -> CommentPage: ...

    def create_comment(self, repo: str, issue_number: int, body: str) -> dict: ...

    def update_comment(self, comment_id: str, body: str) -> None: ...

    def delete_comment(self, comment_id: str) -> None: ...

    def minimize_comment(self, comment_id: str, classifier: str) -> None: ...


def warn(message: str) -> None:
    """Warn."""
    print(f"::warning::{message}", file=sys.stderr)


def _marker_parts(header: str | None, prefix: str | None) -> tuple[str, str]:
    key = (header or "").strip() or DEFAULT_HEADER
    marker_prefix = (prefix or "").strip() or DEFAULT_PREFIX
    return marker_prefix, key


def comment_start_marker(header: str | None, prefix: str | None = DEFAULT_PREFIX) -> str:
    """Comment start marker."""
    marker_prefix, key = _marker_parts(header, prefix)
    return f"<!-- {marker_prefix}:{key}:START -->"


def comment_end_marker(header: str | None, prefix: str | None = DEFAULT_PREFIX) -> str:
    """Comment end marker."""
    marker_prefix, key = _marker_parts(header, prefix)
    return f"<!-- {marker_prefix}:{key}:END -->"


def body_with_header(body: str, header: str | None, prefix: str | None = DEFAULT_PREFIX) -> str:
    """Wrap `body` in the marker pair."""
    return "\n".join(
        [comment_start_marker(header, prefix), body, comment_end_marker(header, prefix)]
    )


def _inner(body: str, start: str, end: str) -> str | None:
    i = body.find(start)
    if i == -1:
        return None
    j = body.find(end, i + len(start))
    if j == -1:
        return None
    return body[i + len(start):j].strip()


def body_without_header(body: str, header: str | None, prefix: str | None = DEFAULT_PREFIX) -> str:
    """Content between the markers, trimmed; empty when either marker is missing."""
    inner = _inner(body or "", comment_start_marker(header, prefix), comment_end_marker(header, prefix))
    return inner if inner is not None else ""


def normalize_login(login: str | None) -> str:
    """Drop a trailing `[bot]`, trim, lowercase."""
    return _BOT_SUFFIX_RE.sub("", login or "").strip().lower()


def find_previous_comment(
    store: CommentStore,
    repo: str,
    number: int,
    header: str | None,
    author_login: str | None = None,
    prefix: str | None = DEFAULT_PREFIX,
    *,
    max_pages: int = MAX_COMMENT_PAGES,
) -> IssueComment | None:
    """Find the first visible comment by the expected author that carries our START marker.

    Pages are fetched one at a time and the walk stops at the first match.
    `author_login` defaults to the authenticated viewer.
    """
    owner, name = split_repo(repo)
    start = comment_start_marker(header, prefix)
    after: str | None = None

    for _ in range(max_pages):
        page = store.comments_page(owner, name, number, after)
        expected = normalize_login(author_login if author_login is not None else page.viewer_login)
        for comment in page.comments:
            if (
                normalize_login(comment.author_login) == expected
                and not comment.is_minimized
                and start in comment.body
            ):
                return comment
        if not page.has_next_page:
            return None
        after = page.end_cursor

    warn(f"Stopped looking for the previous comment after {max_pages} pages.")
    return None


def _compose(body: str, header: str | None, previous_body: str | None, prefix: str | None) -> str:
    if not previous_body:
        return body_with_header(body, header, prefix)

    start = comment_start_marker(header, prefix)
    end = comment_end_marker(header, prefix)
    previous_inner = _inner(previous_body, start, end)
    if previous_inner is None:
        warn(
            f"Previous comment body has no {start} ... {end} pair; "
            "its content is not carried over."
        )
        previous_inner = ""
    return body_with_header(f"{previous_inner}\n{body}", header, prefix)


def update_comment(
    store: CommentStore,
    comment_id: str,
    body: str,
    header: str | None,
    previous_body: str | None = None,
    prefix: str | None = DEFAULT_PREFIX,
) -> None:
    """Rewrite comment `comment_id`; appends below `previous_body` when given."""
    if not body and not previous_body:
        warn("Comment body cannot be blank")
        return
    store.update_comment(comment_id, _compose(body, header, previous_body, prefix))


def create_comment(
    store: CommentStore,
    repo: str,
    issue_number: int,
    body: str,
    header: str | None,
    previous_body: str | None = None,
    prefix: str | None = DEFAULT_PREFIX,
) -> dict | None:
    """Create the sticky comment; returns the store response, or None on blank input."""
    if not body and not previous_body:
        warn("Comment body cannot be blank")
        return None
    return store.create_comment(repo, issue_number, _compose(body, header, previous_body, prefix))


def delete_comment(store: CommentStore, comment_id: str) -> None:
    """Delete comment."""
    store.delete_comment(comment_id)


def minimize_comment(
    store: CommentStore,
    comment_id: str,
    classifier: str = DEFAULT_HIDE_CLASSIFIER,
) -> None:
    """Minimize comment."""
    store.minimize_comment(comment_id, (classifier or DEFAULT_HIDE_CLASSIFIER).upper())


def get_body_of(previous: IssueComment | dict | None, append: bool, hide_details: bool) -> str | None:
    """Previous body to append to, or None when the caller replaces outright.

    With `hide_details`, every `<details ... open ...>` tag loses its `open`.
    """
    if not append:
        return None
    if isinstance(previous, dict):
        body = previous.get("body")
    else:
        body = getattr(previous, "body", None)
    if not hide_details or not body:
        return body
    return _DETAILS_OPEN_RE.sub(r"\1\2", body)


def comments_equal(
    body: str,
    previous: str | None,
    header: str | None,
    prefix: str | None = DEFAULT_PREFIX,
) -> bool:
    """Compare marker-inner content, falling back to the raw text when unmarked."""
    start = comment_start_marker(header, prefix)
    end = comment_end_marker(header, prefix)

    def _normalize(text: str) -> str:
        inner = _inner(text, start, end)
        return inner if inner is not None else text

    return _normalize(body or "") == _normalize(previous or "")
