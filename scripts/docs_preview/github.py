"""GitHub comment store backed by the gh CLI.

Reads go through GraphQL (cursor pagination + viewer login in one query);
comment creation uses REST so callers get the usual issue-comment payload.
"""
from __future__ import annotations

import json
import os
import random
import subprocess
import sys
import tempfile
import time
from dataclasses import dataclass, field

COMMENTS_PAGE_SIZE = 100


class CommentPermissionError(Exception):
    """Token lacks pull-requests: write permission."""


class TransientGitHubError(Exception):
    """GitHub API returned a transient error (5xx)."""


class GraphQLError(Exception):
    """GraphQL response carried an `errors` array."""


_TRANSIENT_STATUSES = ("502", "503", "504")
_PERMISSION_HINTS = ("403", "resource not accessible", "insufficient")

PERMISSION_HELP = (
    "Unable to manage the docs preview comment: token lacks pull-requests: write permission.\n"
    "Grant it in the workflow:\n"
    "permissions:\n"
    "  contents: read\n"
    "  pull-requests: write"
)


def _is_transient_error(stderr: str) -> bool:
    """True for gateway failures, in either `(HTTP 503)` or `HTTP 503` form."""
    text = stderr.lower()
    return any(f"http {status}" in text for status in _TRANSIENT_STATUSES)


def _is_permission_error(stderr: str) -> bool:
    text = stderr.lower()
    return any(hint in text for hint in _PERMISSION_HINTS)


def _backoff(attempt: int, base_delay: float) -> float:
    return base_delay * (2 ** attempt) + random.uniform(0, 0.5)


def _run_gh(
    args: list[str],
    *,
    check: bool = True,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> subprocess.CompletedProcess[str]:
    """Run `gh` with `args`; comment mutations and lookups all come through here.

    Gateway errors are retried up to `max_retries` times. Permission
    failures are raised at once since a retry cannot fix the token.

    Raises:
        CommentPermissionError: the token cannot write PR comments
        TransientGitHubError: gateway errors persisted through every attempt
        subprocess.CalledProcessError: any other failure, when `check` is set
    """
    attempt = 0
    while True:
        result = subprocess.run(["gh", *args], capture_output=True, text=True, check=False)
        if result.returncode == 0:
            return result

        stderr = result.stderr or ""
        if _is_permission_error(stderr):
            raise CommentPermissionError(PERMISSION_HELP)

        if not _is_transient_error(stderr):
            if check:
                raise subprocess.CalledProcessError(
                    result.returncode, result.args, result.stdout, result.stderr
                )
            return result

        attempt += 1
        if attempt >= max_retries:
            raise TransientGitHubError(
                f"GitHub API returned transient error after {max_retries} attempts: {stderr}"
            )
        delay = _backoff(attempt - 1, base_delay)
        print(
            f"::warning::GitHub API error (attempt {attempt}/{max_retries}), retrying in {delay:.1f}s...",
            file=sys.stderr,
        )
        time.sleep(delay)

def _gh_json(args: list[str], payload: dict) -> dict:
    """Run `gh api ... --input <payload>` and decode the JSON response."""
    with tempfile.NamedTemporaryFile("w", encoding="utf-8", suffix=".json", delete=False) as handle:
        json.dump(payload, handle)
        tmp_path = handle.name
    try:
        result = _run_gh([*args, "--input", tmp_path])
    finally:
        os.unlink(tmp_path)
    data = json.loads(result.stdout or "{}")
    return data if isinstance(data, dict) else {}


def graphql(query: str, variables: dict[str, object]) -> dict:
    """Run a GraphQL document and return its `data` object."""
    response = _gh_json(["api", "graphql"], {"query": query, "variables": variables})
    errors = response.get("errors")
    if errors:
        messages = "; ".join(
            str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
        )
        raise GraphQLError(messages)
    data = response.get("data")
    return data if isinstance(data, dict) else {}


def split_repo(repo: str) -> tuple[str, str]:
    """Split `owner/name` into its parts."""
    owner, sep, name = (repo or "").strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"expected owner/repo, got {repo!r}")
    return owner, name


@dataclass(frozen=True)
class IssueComment:
    """A PR conversation comment as seen by the reconciler."""
    id: str
    author_login: str
    body: str
    is_minimized: bool = False


@dataclass(frozen=True)
class CommentPage:
    """One page of PR comments plus the authenticated login."""
    viewer_login: str
    comments: list[IssueComment] = field(default_factory=list)
    end_cursor: str | None = None
    has_next_page: bool = False


COMMENTS_QUERY = """
query($repo: String! $owner: String! $number: Int! $after: String) {
  viewer { login }
  repository(name: $repo owner: $owner) {
    pullRequest(number: $number) {
      comments(first: %d after: $after) {
        nodes { id author { login } isMinimized body }
        pageInfo { endCursor hasNextPage }
      }
    }
  }
}
""" % COMMENTS_PAGE_SIZE

UPDATE_COMMENT_MUTATION = """
mutation($input: UpdateIssueCommentInput!) {
  updateIssueComment(input: $input) { issueComment { id body } }
}
"""

DELETE_COMMENT_MUTATION = """
mutation($id: ID!) { deleteIssueComment(input: { id: $id }) { clientMutationId } }
"""

MINIMIZE_COMMENT_MUTATION = """
mutation($input: MinimizeCommentInput!) {
  minimizeComment(input: $input) { minimizedComment { isMinimized } }
}
"""


def _parse_comment(node: object) -> IssueComment | None:
    if not isinstance(node, dict):
        return None
    author = node.get("author")
    login = author.get("login") if isinstance(author, dict) else None
    return IssueComment(
        id=str(node.get("id") or ""),
        author_login=str(login or ""),
        body=str(node.get("body") or ""),
        is_minimized=bool(node.get("isMinimized")),
    )


def parse_comments_page(data: dict) -> CommentPage:
    """Turn the COMMENTS_QUERY `data` object into a CommentPage."""
    viewer = data.get("viewer")
    viewer_login = str(viewer.get("login") or "") if isinstance(viewer, dict) else ""

    repository = data.get("repository")
    pull = repository.get("pullRequest") if isinstance(repository, dict) else None
    conn = pull.get("comments") if isinstance(pull, dict) else None
    if not isinstance(conn, dict):
        return CommentPage(viewer_login=viewer_login)

    nodes = conn.get("nodes")
    comments = [c for c in (_parse_comment(n) for n in (nodes or [])) if c is not None]
    page_info = conn.get("pageInfo")
    page_info = page_info if isinstance(page_info, dict) else {}
    cursor = page_info.get("endCursor")
    return CommentPage(
        viewer_login=viewer_login,
        comments=comments,
        end_cursor=cursor if isinstance(cursor, str) else None,
        has_next_page=bool(page_info.get("hasNextPage")),
    )


class GitHubCommentStore:
    """Remote comment store: list, create, update, delete, minimize."""

    def comments_page(self, owner: str, name: str, number: int, after: str | None) -> CommentPage:
        """Fetch one page of PR comments after `after`."""
        data = graphql(
            COMMENTS_QUERY,
            {"owner": owner, "repo": name, "number": number, "after": after},
        )
        return parse_comments_page(data)

    def create_comment(self, repo: str, issue_number: int, body: str) -> dict:
        """Create an issue comment and return the REST response."""
        return _gh_json(
            ["api", "-X", "POST", f"repos/{repo}/issues/{issue_number}/comments"],
            {"body": body},
        )

    def update_comment(self, comment_id: str, body: str) -> None:
        """Replace the body of comment `comment_id`."""
        graphql(UPDATE_COMMENT_MUTATION, {"input": {"id": comment_id, "body": body}})

    def delete_comment(self, comment_id: str) -> None:
        """Delete comment `comment_id`."""
        graphql(DELETE_COMMENT_MUTATION, {"id": comment_id})

    def minimize_comment(self, comment_id: str, classifier: str) -> None:
        """Hide comment `comment_id` with the given classifier."""
        graphql(
            MINIMIZE_COMMENT_MUTATION,
            {"input": {"subjectId": comment_id, "classifier": classifier}},
        )
