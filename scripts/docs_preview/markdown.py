"""Markdown helpers for docs preview comments.

Keep surface area small: the preview table, share links, community links,
<details> blocks, and the first-contribution quote.
"""

from __future__ import annotations

from urllib.parse import quote

TWITTER_PROFILE_BASE = "https://twitter.com/"

# Characters encodeURIComponent leaves alone, so share links match the
# JavaScript action byte for byte.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(text: str) -> str:
    """Percent-encode a URL component the way encodeURIComponent does."""
    return quote(text or "", safe=_URI_COMPONENT_SAFE)


def social_profile_url(handle: str | None) -> str:
    """Turn `@handle`, `handle` or a full URL into a profile URL."""
    text = (handle or "").strip()
    if not text:
        return ""
    if text.startswith("http"):
        return text
    return f"{TWITTER_PROFILE_BASE}{text.removeprefix('@')}"


def preview_table(url: str, status: str, updated: str) -> list[str]:
    """Preview table."""
    return [
        "### Docs Preview",
        "| Preview | Status | Updated (UTC) |",
        "| - | - | - |",
        f"| [Open Preview]({url}) | {status} | {updated} |",
    ]


def share_links(share_text: str, target_url: str) -> list[str]:
    """Bullet list of social share intents for `share_text`."""
    text = encode_uri_component(share_text)
    target = encode_uri_component(target_url)
    if not target:
        return []
    return [
        f"- [X](https://twitter.com/intent/tweet?text={text})",
        f"- [Mastodon](https://mastodon.social/share?text={text})",
        f"- [Reddit](https://www.reddit.com/submit?text={text})",
        f"- [LinkedIn](https://www.linkedin.com/sharing/share-offsite/?url={target}&mini=true&text={text})",
    ]


def community_links(
    *,
    docs_url: str | None = None,
    community_url: str | None = None,
    twitter_handle: str | None = None,
) -> list[str]:
    """Community links."""
    lines: list[str] = []
    if docs_url:
        lines.append(f"- Visit our [Documentation]({docs_url}) for detailed information.")
    if community_url:
        lines.append(
            f"- Join our [Community]({community_url}) to get help, request features, and share feedback."
        )
    profile = social_profile_url(twitter_handle)
    if profile:
        lines.append(f"- Follow us on [X]({profile}) for updates and announcements.")
    return lines


def details_block(
    body_lines: list[str],
    *,
    summary: str = "Details",
    indent: str = "",
) -> list[str]:
    """Collapsible <details> section; empty when there is nothing to show."""
    if not body_lines:
        return []
    lines = [
        f"{indent}<details>",
        f"{indent}<summary>{summary}</summary>",
        "",
    ]
    for ln in body_lines:
        if ln:
            lines.append(f"{indent}{ln}")
        else:
            lines.append("")
    lines.extend(["", f"{indent}</details>", ""])
    return lines


def first_contribution_quote(title: str, message: str, author: str = "") -> list[str]:
    """Blockquote congratulating a first-time contributor."""
    lines = [
        "<br/>",
        f"> {title}",
        "> ",
        f"> {message}",
    ]
    if author:
        lines.extend(["> ", f"> {author}"])
    lines.append("")
    return lines
