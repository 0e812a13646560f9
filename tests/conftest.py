"""Shared fixtures: scripts/ on sys.path and an in-memory comment store."""
import sys
from pathlib import Path

import pytest

SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"

# Add scripts/ to sys.path so tests import docs_preview without installing it.
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

from docs_preview.github import CommentPage, IssueComment  # noqa: E402


class FakeCommentStore:
    """Records every call; serves comments in fixed-size pages."""

    def __init__(self, comments=None, *, viewer="docs-bot[bot]", page_size=100):
        self.comments = list(comments or [])
        self.viewer = viewer
        self.page_size = page_size
        self.calls = []
        self._next_id = 1000

    def comments_page(self, owner, name, number, after):
        self.calls.append(("comments_page", owner, name, number, after))
        start = int(after) if after else 0
        chunk = self.comments[start:start + self.page_size]
        end = start + len(chunk)
        return CommentPage(
            viewer_login=self.viewer,
            comments=chunk,
            end_cursor=str(end),
            has_next_page=end < len(self.comments),
        )

    def create_comment(self, repo, issue_number, body):
        self.calls.append(("create", repo, issue_number, body))
        self._next_id += 1
        return {"id": self._next_id, "node_id": f"IC_{self._next_id}", "body": body}

    def update_comment(self, comment_id, body):
        self.calls.append(("update", comment_id, body))

    def delete_comment(self, comment_id):
        self.calls.append(("delete", comment_id))

    def minimize_comment(self, comment_id, classifier):
        self.calls.append(("minimize", comment_id, classifier))

    def mutations(self):
        return [c for c in self.calls if c[0] != "comments_page"]


def make_comment(id, body, *, author="docs-bot[bot]", minimized=False):
    return IssueComment(id=id, author_login=author, body=body, is_minimized=minimized)


@pytest.fixture
def store():
    return FakeCommentStore()
