#!/usr/bin/env python3
"""Render the branded docs preview PR comment.

Banner selection is deterministic for a given seed (normally the preview
URL) so re-renders on the same PR keep the same art.
"""

from __future__ import annotations

import argparse
import os
import random
import sys
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Callable, Sequence

from docs_preview.ascii_art import ASCII_SET, BRAILLE_SPACE, FIRST_CONTRIBUTION_ASCII, LEFT_PAD, AsciiChoice
from docs_preview.branding_config import (
    BrandingConfig,
    ConfigError,
    RenderOptions,
    branding_from_env,
    load_branding_config,
    merge_branding,
)
from docs_preview.markdown import (
    community_links,
    details_block,
    first_contribution_quote,
    preview_table,
    share_links,
)

DEFAULT_STATUS = "Ready"
DEFAULT_FIRST_CONTRIBUTOR_TITLE = "🎉 **Your first contribution!**"
DEFAULT_FIRST_CONTRIBUTOR_MESSAGE = (
    "This is your first contribution, and I just wanted to say thank you. "
    "You're helping us build something great. Here's to many more commits ahead! 🚀"
)
DEFAULT_SHARE_TEXT = "I just made a contribution!"
SHARE_SUMMARY = "💙 Share your contribution on social media"
COMMUNITY_SUMMARY = "🪧 Documentation and Community"

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
_UINT32 = 0xFFFFFFFF


def fail(message: str, code: int = 2) -> int:
    """Fail."""
    print(f"render-comment: {message}", file=sys.stderr)
    return code


def _utf16_units(text: str) -> list[int]:
    raw = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2)]


def fnv1a_32(seed: str) -> int:
    """32-bit FNV-1a over UTF-16 code units."""
    h = FNV_OFFSET_BASIS
    for unit in _utf16_units(seed):
        h ^= unit
        h = (h * FNV_PRIME) & _UINT32
    return h


def pick_weighted_ascii(
    choices: Sequence[AsciiChoice],
    seed: str | None = None,
    *,
    rng: Callable[[], float] = random.random,
) -> str:
    """Pick one art from `choices` proportionally to weight.

    A non-empty seed makes the draw deterministic; otherwise `rng` supplies a
    float in [0, 1). Negative weights count as zero. When every weight is
    zero the first choice wins.
    """
    total = sum(max(0, c.weight) for c in choices)
    if total <= 0:
        return choices[0].art if choices else ""

    if seed:
        r = (fnv1a_32(seed) / 0x100000000) * total
    else:
        r = rng() * total

    acc = 0.0
    for c in choices:
        acc += max(0, c.weight)
        if r < acc:
            return c.art
    return choices[-1].art if choices else ""


def format_art(art: str) -> str:
    """Swap spaces for Braille blanks and left-pad every line."""
    padded = art.replace(" ", BRAILLE_SPACE)
    return "\n".join(f"{LEFT_PAD}{line}" for line in padded.split("\n"))


def http_date(moment: datetime) -> str:
    """Format `moment` as an HTTP-date in GMT."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _share_section(url: str, branding: BrandingConfig) -> list[str]:
    if not (branding.share_text_template or branding.share_url_default):
        return []
    template = branding.share_text_template or DEFAULT_SHARE_TEXT
    share_text = template.replace("{{url}}", url or "")
    target = url or branding.share_url_default or ""
    return details_block(share_links(share_text, target), summary=SHARE_SUMMARY)


def _community_section(branding: BrandingConfig) -> list[str]:
    links = community_links(
        docs_url=branding.docs_url,
        community_url=branding.community_url,
        twitter_handle=branding.twitter_handle,
    )
    return details_block(links, summary=COMMUNITY_SUMMARY)


def _render_one(
    art: str,
    *,
    url: str,
    status: str,
    updated: str,
    branding: BrandingConfig,
    first_contribution: bool = False,
) -> str:
    lines: list[str] = ["```"]
    lines.append(format_art(FIRST_CONTRIBUTION_ASCII if first_contribution else art))
    lines.extend(["```", ""])

    if first_contribution:
        lines.extend(
            first_contribution_quote(
                branding.first_contributor_title or DEFAULT_FIRST_CONTRIBUTOR_TITLE,
                branding.first_contributor_message or DEFAULT_FIRST_CONTRIBUTOR_MESSAGE,
                branding.first_contributor_author or "",
            )
        )
    if url and updated:
        lines.extend(preview_table(url, status, updated))
        lines.append("")
    lines.extend(_share_section(url, branding))
    lines.extend(_community_section(branding))
    if branding.footer_text:
        lines.extend(["---", branding.footer_text, ""])
    return "\n".join(lines)


def render_comment_markdown(
    url: str,
    options: RenderOptions | None = None,
    *,
    now: Callable[[], datetime] | None = None,
    rng: Callable[[], float] | None = None,
    choices: Sequence[AsciiChoice] = ASCII_SET,
) -> str:
    """Render the full comment body for `url`.

    `now` and `rng` stand in for the wall clock and the random source.
    """
    opts = options or RenderOptions()
    branding = opts.branding or BrandingConfig()
    updated = http_date((now or _utc_now)())
    status = opts.status or DEFAULT_STATUS
    url = url or ""

    if opts.debug:
        return "\n\n".join(
            _render_one(c.art, url=url, status=status, updated=updated, branding=branding)
            for c in choices
        )

    seed = opts.seed if opts.seed is not None else url
    art = pick_weighted_ascii(choices, seed, rng=rng or random.random)
    return _render_one(
        art,
        url=url,
        status=status,
        updated=updated,
        branding=branding,
        first_contribution=opts.first_contribution,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse args."""
    parser = argparse.ArgumentParser(description="Render the docs preview PR comment.")
    parser.add_argument(
        "--url",
        default=os.environ.get("PREVIEW_URL", ""),
        help="Preview deployment URL (default: env PREVIEW_URL).",
    )
    parser.add_argument("--seed", default=None, help="Seed for banner selection (default: the URL).")
    parser.add_argument(
        "--status",
        default=os.environ.get("PREVIEW_STATUS") or None,
        help=f"Status column text (default: env PREVIEW_STATUS or {DEFAULT_STATUS!r}).",
    )
    parser.add_argument("--debug", action="store_true", help="Render every banner for visual QA.")
    parser.add_argument(
        "--first-contribution",
        action="store_true",
        help="Show the first-contribution banner and message.",
    )
    parser.add_argument(
        "--branding-config",
        default=os.environ.get("BRANDING_CONFIG", ""),
        help="YAML branding file (default: env BRANDING_CONFIG).",
    )
    parser.add_argument("--output", default="", help="Write markdown here instead of stdout.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main."""
    args = parse_args(argv)

    branding = BrandingConfig()
    if args.branding_config:
        try:
            branding = load_branding_config(Path(args.branding_config))
        except ConfigError as exc:
            return fail(str(exc))
    try:
        branding = merge_branding(branding, branding_from_env())
    except ConfigError as exc:
        return fail(str(exc))

    markdown = render_comment_markdown(
        args.url,
        RenderOptions(
            debug=args.debug,
            seed=args.seed,
            first_contribution=args.first_contribution,
            status=args.status,
            branding=branding,
        ),
    )

    if not args.output:
        sys.stdout.write(markdown)
        if not markdown.endswith("\n"):
            sys.stdout.write("\n")
        return 0

    output_path = Path(args.output)
    try:
        output_path.write_text(markdown, encoding="utf-8")
    except OSError as exc:
        return fail(f"unable to write {output_path}: {exc}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
