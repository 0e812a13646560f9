"""Tests for docs_preview.render_comment: banner selection and the comment body."""
from __future__ import annotations

import os
import subprocess
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from docs_preview.ascii_art import ASCII_SET, BRAILLE_SPACE, FIRST_CONTRIBUTION_ASCII, LEFT_PAD, AsciiChoice
from docs_preview.branding_config import BrandingConfig, RenderOptions
from docs_preview.render_comment import (
    COMMUNITY_SUMMARY,
    DEFAULT_FIRST_CONTRIBUTOR_MESSAGE,
    DEFAULT_FIRST_CONTRIBUTOR_TITLE,
    SHARE_SUMMARY,
    fnv1a_32,
    format_art,
    http_date,
    main as render_comment_main,
    pick_weighted_ascii,
    render_comment_markdown,
)

ROOT = Path(__file__).parent.parent
SCRIPT = ROOT / "scripts" / "render-comment.py"

URL = "https://docs-git-feature.vercel.app"
FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


def no_random():
    raise AssertionError("seeded selection must not consult the random source")


POOL_AB = (AsciiChoice("A", 1), AsciiChoice("B", 1))


class TestFnv1a:
    @pytest.mark.parametrize(
        ("seed", "expected"),
        [
            ("", 0x811C9DC5),
            ("a", 0xE40C292C),
            ("foobar", 0xBF9CF968),
        ],
    )
    def test_reference_vectors(self, seed, expected):
        assert fnv1a_32(seed) == expected

    def test_stays_within_32_bits(self):
        assert 0 <= fnv1a_32("https://x.vercel.app" * 50) < 2 ** 32

    def test_non_bmp_hashes_both_surrogates(self):
        assert fnv1a_32("🚀") != fnv1a_32("\ud83d")


class TestPickWeightedAscii:
    def test_same_seed_same_art(self):
        first = pick_weighted_ascii(ASCII_SET, "abc123", rng=no_random)
        for _ in range(5):
            assert pick_weighted_ascii(ASCII_SET, "abc123", rng=no_random) == first

    @pytest.mark.parametrize("seed", ["abc123", "x", URL, "", None])
    def test_zero_weights_never_win(self, seed):
        pool = (AsciiChoice("zero-a", 0), AsciiChoice("five", 5), AsciiChoice("zero-b", 0))
        assert pick_weighted_ascii(pool, seed, rng=lambda: 0.5) == "five"

    @pytest.mark.parametrize("seed", ["abc123", None])
    def test_all_zero_weights_pick_first(self, seed):
        pool = (AsciiChoice("first", 0), AsciiChoice("second", 0))
        assert pick_weighted_ascii(pool, seed) == "first"

    def test_negative_weights_count_as_zero(self):
        pool = (AsciiChoice("neg", -10), AsciiChoice("pos", 1))
        assert pick_weighted_ascii(pool, "anything") == "pos"
        assert pick_weighted_ascii((AsciiChoice("only", -1),), None) == "only"

    def test_empty_pool(self):
        assert pick_weighted_ascii((), "seed") == ""
        assert pick_weighted_ascii((), None) == ""

    def test_unseeded_uses_rng(self):
        assert pick_weighted_ascii(POOL_AB, None, rng=lambda: 0.0) == "A"
        assert pick_weighted_ascii(POOL_AB, None, rng=lambda: 0.49) == "A"
        assert pick_weighted_ascii(POOL_AB, None, rng=lambda: 0.5) == "B"
        assert pick_weighted_ascii(POOL_AB, None, rng=lambda: 0.999) == "B"

    def test_empty_seed_is_unseeded(self):
        assert pick_weighted_ascii(POOL_AB, "", rng=lambda: 0.75) == "B"

    def test_seed_maps_hash_onto_total(self):
        # fnv1a("a") / 2**32 is about 0.89, past the first 0.8 of the weight.
        pool = (AsciiChoice("low", 8), AsciiChoice("high", 2))
        assert pick_weighted_ascii(pool, "a") == "high"


class TestFormatArt:
    def test_braille_spaces_and_pad(self):
        assert format_art("a b\n c") == f"{LEFT_PAD}a{BRAILLE_SPACE}b\n{LEFT_PAD}{BRAILLE_SPACE}c"

    def test_no_plain_spaces_survive(self):
        for choice in ASCII_SET:
            assert " " not in format_art(choice.art)


class TestHttpDate:
    def test_gmt_format(self):
        assert http_date(FIXED_NOW) == "Sun, 18 Oct 2026 12:00:00 GMT"

    def test_converts_to_utc(self):
        local = FIXED_NOW.astimezone(timezone(timedelta(hours=2)))
        assert http_date(local) == "Sun, 18 Oct 2026 12:00:00 GMT"

    def test_naive_is_utc(self):
        assert http_date(FIXED_NOW.replace(tzinfo=None)) == "Sun, 18 Oct 2026 12:00:00 GMT"


class TestRenderCommentMarkdown:
    def test_seeded_render_is_stable(self):
        a = render_comment_markdown(URL, RenderOptions(seed="abc123"), now=fixed_clock, rng=no_random)
        b = render_comment_markdown(URL, RenderOptions(seed="abc123"), now=fixed_clock, rng=no_random)
        assert a == b

    def test_url_seeds_selection_by_default(self):
        by_url = render_comment_markdown(URL, now=fixed_clock, rng=no_random)
        explicit = render_comment_markdown(URL, RenderOptions(seed=URL), now=fixed_clock, rng=no_random)
        assert by_url == explicit

    def test_two_choice_pool_is_deterministic(self):
        picks = {
            render_comment_markdown(
                "https://x.vercel.app",
                RenderOptions(seed="abc123"),
                choices=POOL_AB,
                now=fixed_clock,
            ).split("\n")[1]
            for _ in range(10)
        }
        assert len(picks) == 1
        assert picks <= {f"{LEFT_PAD}A", f"{LEFT_PAD}B"}

    def test_only_timestamp_varies_between_renders(self):
        later = lambda: FIXED_NOW + timedelta(minutes=5)  # noqa: E731
        a = render_comment_markdown(URL, RenderOptions(seed="abc123"), now=fixed_clock)
        b = render_comment_markdown(URL, RenderOptions(seed="abc123"), now=later)
        assert a.replace("12:00:00", "12:05:00") == b

    def test_default_body_layout(self):
        body = render_comment_markdown(URL, choices=(AsciiChoice("art", 1),), now=fixed_clock)
        assert body == "\n".join(
            [
                "```",
                f"{LEFT_PAD}art",
                "```",
                "",
                "### Docs Preview",
                "| Preview | Status | Updated (UTC) |",
                "| - | - | - |",
                f"| [Open Preview]({URL}) | Ready | Sun, 18 Oct 2026 12:00:00 GMT |",
                "",
            ]
        )

    def test_custom_status(self):
        body = render_comment_markdown(URL, RenderOptions(status="Building"), now=fixed_clock)
        assert "| Building | Sun, 18 Oct 2026 12:00:00 GMT |" in body

    def test_no_url_drops_table(self):
        body = render_comment_markdown("", RenderOptions(seed="s"), now=fixed_clock)
        assert "### Docs Preview" not in body
        assert body.startswith("```\n")

    def test_no_branding_sections_without_branding(self):
        body = render_comment_markdown(URL, now=fixed_clock)
        assert "<details>" not in body
        assert "\n---\n" not in body
        assert "\n\n\n" not in body

    def test_first_contribution_banner_replaces_art(self):
        body = render_comment_markdown(URL, RenderOptions(first_contribution=True), now=fixed_clock)
        assert format_art(FIRST_CONTRIBUTION_ASCII) in body
        for choice in ASCII_SET:
            assert format_art(choice.art) not in body
        assert f"> {DEFAULT_FIRST_CONTRIBUTOR_TITLE}" in body
        assert f"> {DEFAULT_FIRST_CONTRIBUTOR_MESSAGE}" in body
        assert body.index("<br/>") < body.index("### Docs Preview")

    def test_first_contribution_branding_and_author(self):
        branding = BrandingConfig(
            first_contributor_title="**Welcome!**",
            first_contributor_message="Thanks for the docs fix.",
            first_contributor_author="- The Docs Team",
        )
        body = render_comment_markdown(
            URL, RenderOptions(first_contribution=True, branding=branding), now=fixed_clock
        )
        assert "> **Welcome!**\n> \n> Thanks for the docs fix.\n> \n> - The Docs Team\n" in body
        assert DEFAULT_FIRST_CONTRIBUTOR_TITLE not in body

    def test_first_contribution_without_author_has_no_author_line(self):
        body = render_comment_markdown(URL, RenderOptions(first_contribution=True), now=fixed_clock)
        assert f"> {DEFAULT_FIRST_CONTRIBUTOR_MESSAGE}\n\n### Docs Preview" in body

    def test_debug_renders_every_choice(self):
        body = render_comment_markdown(URL, RenderOptions(debug=True), now=fixed_clock, rng=no_random)
        for choice in ASCII_SET:
            assert format_art(choice.art) in body
        assert body.count("```") == 2 * len(ASCII_SET)
        assert body.count("### Docs Preview") == len(ASCII_SET)

    def test_debug_ignores_first_contribution_and_weights(self):
        pool = (AsciiChoice("zero", 0), AsciiChoice("one", 1))
        body = render_comment_markdown(
            URL, RenderOptions(debug=True, first_contribution=True), choices=pool, now=fixed_clock
        )
        assert f"{LEFT_PAD}zero" in body
        assert f"{LEFT_PAD}one" in body
        assert "<br/>" not in body

    def test_debug_joins_with_blank_line(self):
        pool = (AsciiChoice("x", 1), AsciiChoice("y", 1))
        body = render_comment_markdown("", RenderOptions(debug=True), choices=pool, now=fixed_clock)
        assert body == f"```\n{LEFT_PAD}x\n```\n\n\n```\n{LEFT_PAD}y\n```\n"


class TestBrandingSections:
    def test_share_section_links(self):
        branding = BrandingConfig(share_text_template="Check {{url}} now")
        body = render_comment_markdown("https://x.vercel.app", RenderOptions(branding=branding), now=fixed_clock)
        text = "Check%20https%3A%2F%2Fx.vercel.app%20now"
        assert f"<summary>{SHARE_SUMMARY}</summary>" in body
        assert f"- [X](https://twitter.com/intent/tweet?text={text})" in body
        assert f"- [Mastodon](https://mastodon.social/share?text={text})" in body
        assert f"- [Reddit](https://www.reddit.com/submit?text={text})" in body
        assert (
            "- [LinkedIn](https://www.linkedin.com/sharing/share-offsite/"
            f"?url=https%3A%2F%2Fx.vercel.app&mini=true&text={text})"
        ) in body

    def test_share_default_text_with_url_default(self):
        branding = BrandingConfig(share_url_default="https://docs.example.com")
        body = render_comment_markdown("", RenderOptions(seed="s", branding=branding), now=fixed_clock)
        assert "tweet?text=I%20just%20made%20a%20contribution!)" in body
        assert "?url=https%3A%2F%2Fdocs.example.com&mini=true" in body

    def test_empty_url_falls_back_to_url_default(self):
        branding = BrandingConfig(share_text_template="See {{url}}", share_url_default="https://docs.example.com")
        body = render_comment_markdown("", RenderOptions(seed="s", branding=branding), now=fixed_clock)
        assert "?url=https%3A%2F%2Fdocs.example.com&mini=true&text=See%20)" in body

    def test_share_template_without_any_target_is_omitted(self):
        branding = BrandingConfig(share_text_template="Look at {{url}}")
        body = render_comment_markdown("", RenderOptions(seed="s", branding=branding), now=fixed_clock)
        assert SHARE_SUMMARY not in body
        assert "<details>" not in body

    def test_url_placeholder_replaced_everywhere(self):
        branding = BrandingConfig(share_text_template="{{url}} and {{url}}")
        body = render_comment_markdown("https://a.b", RenderOptions(branding=branding), now=fixed_clock)
        assert "text=https%3A%2F%2Fa.b%20and%20https%3A%2F%2Fa.b" in body

    def test_community_section_lists_present_items(self):
        branding = BrandingConfig(docs_url="https://docs.example.com", twitter_handle="@exampledocs")
        body = render_comment_markdown(URL, RenderOptions(branding=branding), now=fixed_clock)
        assert f"<summary>{COMMUNITY_SUMMARY}</summary>" in body
        assert "- Visit our [Documentation](https://docs.example.com)" in body
        assert "[Community]" not in body
        assert "- Follow us on [X](https://twitter.com/exampledocs)" in body

    def test_full_url_handle_kept(self):
        branding = BrandingConfig(twitter_handle="https://x.com/exampledocs")
        body = render_comment_markdown(URL, RenderOptions(branding=branding), now=fixed_clock)
        assert "[X](https://x.com/exampledocs)" in body

    def test_footer(self):
        branding = BrandingConfig(footer_text="Made with *care*")
        body = render_comment_markdown(URL, RenderOptions(branding=branding), now=fixed_clock)
        assert body.endswith("---\nMade with *care*\n")

    def test_section_order(self):
        branding = BrandingConfig(
            share_text_template="{{url}}",
            community_url="https://github.com/example/docs/discussions",
            footer_text="footer",
        )
        body = render_comment_markdown(
            URL, RenderOptions(first_contribution=True, branding=branding), now=fixed_clock
        )
        positions = [
            body.index("```"),
            body.index("<br/>"),
            body.index("### Docs Preview"),
            body.index(SHARE_SUMMARY),
            body.index(COMMUNITY_SUMMARY),
            body.index("\n---\nfooter"),
        ]
        assert positions == sorted(positions)


class TestMain:
    def _clear_inputs(self, monkeypatch):
        for key in list(os.environ):
            if key.startswith("INPUT_"):
                monkeypatch.delenv(key, raising=False)

    def test_writes_output_file(self, tmp_path, monkeypatch):
        self._clear_inputs(monkeypatch)
        out = tmp_path / "comment.md"

        code = render_comment_main(["--url", URL, "--seed", "abc", "--status", "Building", "--output", str(out)])

        assert code == 0
        body = out.read_text(encoding="utf-8")
        assert f"| [Open Preview]({URL}) | Building |" in body

    def test_branding_config_file(self, tmp_path, monkeypatch):
        self._clear_inputs(monkeypatch)
        config = tmp_path / "branding.yml"
        config.write_text("branding:\n  footer_text: Docs team\n", encoding="utf-8")
        out = tmp_path / "comment.md"

        assert render_comment_main(["--url", URL, "--branding-config", str(config), "--output", str(out)]) == 0
        assert out.read_text(encoding="utf-8").endswith("---\nDocs team\n")

    def test_env_inputs_override_file(self, tmp_path, monkeypatch):
        self._clear_inputs(monkeypatch)
        config = tmp_path / "branding.yml"
        config.write_text("footer_text: from file\ndocs_url: https://docs.example.com\n", encoding="utf-8")
        monkeypatch.setenv("INPUT_FOOTER_TEXT", "from input")
        out = tmp_path / "comment.md"

        assert render_comment_main(["--url", URL, "--branding-config", str(config), "--output", str(out)]) == 0
        body = out.read_text(encoding="utf-8")
        assert body.endswith("---\nfrom input\n")
        assert "https://docs.example.com" in body

    def test_bad_config_exits_2(self, tmp_path, monkeypatch, capsys):
        self._clear_inputs(monkeypatch)
        config = tmp_path / "branding.yml"
        config.write_text("colour: blue\n", encoding="utf-8")

        assert render_comment_main(["--url", URL, "--branding-config", str(config)]) == 2
        assert "render-comment: config: unknown key 'colour'" in capsys.readouterr().err

    def test_stdout_when_no_output(self, monkeypatch, capsys):
        self._clear_inputs(monkeypatch)
        assert render_comment_main(["--url", URL, "--first-contribution"]) == 0
        assert DEFAULT_FIRST_CONTRIBUTOR_TITLE in capsys.readouterr().out

    def test_script_entrypoint(self, tmp_path):
        out = tmp_path / "comment.md"
        env = {k: v for k, v in os.environ.items() if not k.startswith("INPUT_")}
        env["PREVIEW_URL"] = URL

        result = subprocess.run(
            [sys.executable, str(SCRIPT), "--debug", "--output", str(out)],
            capture_output=True,
            text=True,
            env=env,
        )

        assert result.returncode == 0, result.stderr
        assert out.read_text(encoding="utf-8").count("### Docs Preview") == len(ASCII_SET)
