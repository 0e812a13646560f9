#!/usr/bin/env python3
"""Create, update, hide or delete the sticky docs preview comment on a PR."""
from __future__ import annotations

import argparse
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from docs_preview.github import (
    CommentPermissionError,
    GitHubCommentStore,
    GraphQLError,
    TransientGitHubError,
)
from docs_preview.pr_comment import (
    DEFAULT_HEADER,
    DEFAULT_HIDE_CLASSIFIER,
    DEFAULT_PREFIX,
    CommentStore,
    body_with_header,
    comments_equal,
    create_comment,
    delete_comment,
    find_previous_comment,
    get_body_of,
    minimize_comment,
    update_comment,
    warn,
)

HIDE_CLASSIFIERS = ("OUTDATED", "RESOLVED", "OFF_TOPIC", "DUPLICATE", "SPAM", "ABUSE")


@dataclass(frozen=True)
class StickyOptions:
    """How to reconcile the new body with an existing sticky comment."""
    header: str = DEFAULT_HEADER
    prefix: str = DEFAULT_PREFIX
    author_login: str | None = None
    append: bool = False
    hide_details: bool = False
    recreate: bool = False
    delete: bool = False
    hide: bool = False
    hide_and_recreate: bool = False
    hide_classify: str = DEFAULT_HIDE_CLASSIFIER
    only_create: bool = False
    only_update: bool = False
    skip_unchanged: bool = False
    ignore_empty: bool = False

    def validate(self) -> None:
        """Reject flag combinations that contradict each other."""
        if self.delete and self.recreate:
            raise ValueError("delete and recreate cannot both be set")
        if self.only_create and self.only_update:
            raise ValueError("only_create and only_update cannot both be set")
        if self.hide_classify.upper() not in HIDE_CLASSIFIERS:
            raise ValueError(
                f"hide_classify must be one of {', '.join(HIDE_CLASSIFIERS)}; got {self.hide_classify!r}"
            )


@dataclass(frozen=True)
class ReconcileResult:
    """What reconcile() did and which comment ids were involved."""
    action: str
    previous_comment_id: str | None = None
    created_comment_id: str | None = None


def notice(message: str) -> None:
    """Notice."""
    print(f"::notice::{message}", file=sys.stderr)


def _created_id(response: dict | None) -> str | None:
    if not isinstance(response, dict):
        return None
    node_id = response.get("node_id") or response.get("id")
    return str(node_id) if node_id else None


def reconcile(
    store: CommentStore,
    *,
    repo: str,
    number: int,
    body: str,
    options: StickyOptions,
) -> ReconcileResult:
    """Bring the PR's sticky comment in line with `body`.

    Remote failures propagate; retrying is the caller's call.
    """
    options.validate()
    header, prefix = options.header, options.prefix

    if not body and options.ignore_empty and not options.delete:
        notice("Comment body is empty; nothing to do.")
        return ReconcileResult(action="ignored")

    previous = find_previous_comment(store, repo, number, header, options.author_login, prefix)
    previous_id = previous.id if previous else None

    if options.delete:
        if previous is None:
            return ReconcileResult(action="none")
        delete_comment(store, previous.id)
        return ReconcileResult(action="deleted", previous_comment_id=previous_id)

    if previous is None:
        if options.only_update:
            return ReconcileResult(action="none")
        created = create_comment(store, repo, number, body, header, None, prefix)
        if created is None:
            return ReconcileResult(action="none")
        return ReconcileResult(action="created", created_comment_id=_created_id(created))

    if options.only_create:
        return ReconcileResult(action="none", previous_comment_id=previous_id)

    if options.hide:
        minimize_comment(store, previous.id, options.hide_classify)
        return ReconcileResult(action="hidden", previous_comment_id=previous_id)

    if options.skip_unchanged and comments_equal(
        body_with_header(body, header, prefix), previous.body, header, prefix
    ):
        notice("Sticky comment is unchanged; skipping update.")
        return ReconcileResult(action="unchanged", previous_comment_id=previous_id)

    previous_body = get_body_of(previous, options.append, options.hide_details)

    # A blank replacement must not take the old comment down first.
    if (options.recreate or options.hide_and_recreate) and not body:
        if not (options.recreate and previous_body):
            warn("Comment body cannot be blank; keeping the existing comment.")
            return ReconcileResult(action="none", previous_comment_id=previous_id)

    if options.recreate:
        delete_comment(store, previous.id)
        created = create_comment(store, repo, number, body, header, previous_body, prefix)
        return ReconcileResult(
            action="recreated",
            previous_comment_id=previous_id,
            created_comment_id=_created_id(created),
        )

    if options.hide_and_recreate:
        minimize_comment(store, previous.id, options.hide_classify)
        created = create_comment(store, repo, number, body, header, None, prefix)
        return ReconcileResult(
            action="recreated",
            previous_comment_id=previous_id,
            created_comment_id=_created_id(created),
        )

    update_comment(store, previous.id, body, header, previous_body, prefix)
    if not body and not previous_body:
        return ReconcileResult(action="none", previous_comment_id=previous_id)
    return ReconcileResult(action="updated", previous_comment_id=previous_id)


def append_output(path: Path, key: str, value: str) -> None:
    """Append one output to a GITHUB_OUTPUT file."""
    delimiter = f"DOCS_PREVIEW_{key.upper()}_{uuid4().hex}"
    while delimiter in value:
        delimiter = f"DOCS_PREVIEW_{key.upper()}_{uuid4().hex}"
    with path.open("a", encoding="utf-8") as fh:
        fh.write(f"{key}<<{delimiter}\n")
        fh.write(value)
        if not value.endswith("\n"):
            fh.write("\n")
        fh.write(f"{delimiter}\n")


def write_github_outputs(path: Path, result: ReconcileResult) -> None:
    """Write github outputs."""
    append_output(path, "action", result.action)
    append_output(path, "previous_comment_id", result.previous_comment_id or "")
    append_output(path, "created_comment_id", result.created_comment_id or "")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse args."""
    p = argparse.ArgumentParser(description="Manage the sticky docs preview PR comment.")
    p.add_argument("--repo", default=os.environ.get("GITHUB_REPOSITORY", ""), help="owner/repo")
    p.add_argument("--pr", type=int, required=True, help="PR number")
    body = p.add_mutually_exclusive_group()
    body.add_argument("--body", default=None, help="Comment markdown.")
    body.add_argument("--body-file", default=None, help="Path to comment markdown.")
    p.add_argument("--header", default=DEFAULT_HEADER, help="Marker key identifying the comment.")
    p.add_argument("--prefix", default=DEFAULT_PREFIX, help="Marker prefix.")
    p.add_argument("--author-login", default=None, help="Expected comment author (default: token owner).")
    p.add_argument("--append", action="store_true", help="Append below the previous body.")
    p.add_argument("--hide-details", action="store_true", help="Collapse open <details> when appending.")
    p.add_argument("--recreate", action="store_true", help="Delete and recreate instead of editing.")
    p.add_argument("--delete", action="store_true", help="Delete the sticky comment.")
    p.add_argument("--hide", action="store_true", help="Minimize the sticky comment.")
    p.add_argument("--hide-and-recreate", action="store_true", help="Minimize and post a fresh comment.")
    p.add_argument("--hide-classify", default=DEFAULT_HIDE_CLASSIFIER, help="Minimize reason.")
    p.add_argument("--only-create", action="store_true", help="Never edit an existing comment.")
    p.add_argument("--only-update", action="store_true", help="Never create a new comment.")
    p.add_argument("--skip-unchanged", action="store_true", help="Skip the edit when content is equal.")
    p.add_argument("--ignore-empty", action="store_true", help="Do nothing when the body is empty.")
    p.add_argument(
        "--github-output",
        default="",
        help="Path to GITHUB_OUTPUT file for comment ids.",
    )
    return p.parse_args(argv)


def fail(message: str, code: int = 2) -> int:
    """Fail."""
    print(f"sticky-comment: {message}", file=sys.stderr)
    return code


def main(argv: list[str] | None = None, store: CommentStore | None = None) -> int:
    """Main."""
    args = parse_args(argv)
    if not args.repo:
        return fail("missing repo (set --repo or GITHUB_REPOSITORY)")

    body = args.body or ""
    if args.body_file:
        try:
            body = Path(args.body_file).read_text(encoding="utf-8")
        except OSError as exc:
            return fail(f"unable to read {args.body_file}: {exc}")

    options = StickyOptions(
        header=args.header,
        prefix=args.prefix,
        author_login=args.author_login,
        append=args.append,
        hide_details=args.hide_details,
        recreate=args.recreate,
        delete=args.delete,
        hide=args.hide,
        hide_and_recreate=args.hide_and_recreate,
        hide_classify=args.hide_classify,
        only_create=args.only_create,
        only_update=args.only_update,
        skip_unchanged=args.skip_unchanged,
        ignore_empty=args.ignore_empty,
    )

    try:
        result = reconcile(
            store or GitHubCommentStore(),
            repo=args.repo,
            number=args.pr,
            body=body,
            options=options,
        )
    except ValueError as exc:
        return fail(str(exc))
    except CommentPermissionError as exc:
        print(f"::error::{exc}", file=sys.stderr)
        return 1
    except TransientGitHubError as exc:
        # Outage: warn but don't fail the job
        print(f"::warning::{exc}", file=sys.stderr)
        print("::warning::Docs preview comment not updated due to GitHub outage.", file=sys.stderr)
        return 0
    except GraphQLError as exc:
        print(f"::error::GitHub GraphQL error: {exc}", file=sys.stderr)
        return 1
    except subprocess.CalledProcessError as exc:
        print(f"gh command failed: {exc.stderr}", file=sys.stderr)
        return 1

    notice(f"Sticky comment result: {result.action}.")
    if args.github_output:
        write_github_outputs(Path(args.github_output), result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
