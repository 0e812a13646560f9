"""Typed loader for branding config (defaults/branding.yml or action inputs).

Centralizes parsing/validation so the workflow doesn't thread nine inputs
through shell.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml


class ConfigError(RuntimeError):
    """Branding config is missing or malformed."""
    pass


@dataclass(frozen=True)
class BrandingConfig:
    """Optional text and links shown around the preview table."""
    first_contributor_title: str | None = None
    first_contributor_message: str | None = None
    first_contributor_author: str | None = None
    share_text_template: str | None = None
    share_url_default: str | None = None
    docs_url: str | None = None
    community_url: str | None = None
    twitter_handle: str | None = None
    footer_text: str | None = None


@dataclass(frozen=True)
class RenderOptions:
    """Data class for Render Options."""
    debug: bool = False
    seed: str | None = None
    first_contribution: bool = False
    status: str | None = None
    branding: BrandingConfig | None = None


BRANDING_FIELDS = tuple(f.name for f in fields(BrandingConfig))


def _normalize_key(key: Any, ctx: str) -> str:
    if not isinstance(key, str):
        raise ConfigError(f"{ctx}: keys must be strings")
    name = key.strip().lower().replace("-", "_")
    if name not in BRANDING_FIELDS:
        raise ConfigError(f"{ctx}: unknown key {key!r}")
    return name


def _optional_str(value: Any, ctx: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{ctx}: expected string")
    s = value.strip()
    return s or None


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"missing config file: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def parse_branding_config(raw: Any, ctx: str = "branding") -> BrandingConfig:
    """Build a BrandingConfig from an already-parsed mapping."""
    if raw is None:
        return BrandingConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"{ctx}: expected mapping")

    values: dict[str, str | None] = {}
    for key, value in raw.items():
        name = _normalize_key(key, ctx)
        values[name] = _optional_str(value, f"{ctx}.{key}")
    return BrandingConfig(**values)


def load_branding_config(path: Path) -> BrandingConfig:
    """Load branding config."""
    raw = _load_yaml(path)

    # Either the fields at top level or nested under `branding:`.
    if isinstance(raw, dict) and "branding" in raw:
        if len(raw) != 1:
            extra = sorted(str(k) for k in raw if k != "branding")
            raise ConfigError(f"config: unexpected top-level keys {extra}")
        return parse_branding_config(raw["branding"])
    return parse_branding_config(raw, "config")


def branding_from_env(environ: Mapping[str, str] | None = None) -> BrandingConfig:
    """Read `INPUT_<FIELD>` variables the way GitHub exposes action inputs."""
    env = os.environ if environ is None else environ
    values: dict[str, str | None] = {}
    for name in BRANDING_FIELDS:
        raw = env.get(f"INPUT_{name.upper()}")
        values[name] = _optional_str(raw, f"INPUT_{name.upper()}")
    return BrandingConfig(**values)


def merge_branding(base: BrandingConfig, override: BrandingConfig) -> BrandingConfig:
    """Fields set on `override` win over `base`."""
    values = {
        name: getattr(override, name) or getattr(base, name)
        for name in BRANDING_FIELDS
    }
    return BrandingConfig(**values)
