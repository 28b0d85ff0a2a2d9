"""Load and validate the YAML configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

CONFIG_ENV_VAR = "RELNOTES_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "release_notes.yaml"
DEFAULT_TOKEN_ENV = "OPEN_AI_TOKEN"

PROVIDERS = ("openai", "ollama")
DEFAULT_MODELS = {"openai": "gpt-4o-mini", "ollama": "llama3.1:8b"}
DEFAULT_BASE_URLS = {"openai": "https://api.openai.com/v1", "ollama": ""}


@dataclass(frozen=True)
class RewriteSettings:
    """Resolved settings for the optional narrative rewrite."""
    provider: str = "openai"
    model: str = DEFAULT_MODELS["openai"]
    base_url: str = DEFAULT_BASE_URLS["openai"]
    api_key: Optional[str] = None
    timeout_s: float = 60.0
    temperature: float = 0.2
    system: Optional[str] = None

    @property
    def enabled(self) -> bool:
        """The rewrite runs only when its credential is configured."""
        if self.provider == "ollama":
            return bool(self.base_url)
        return bool(self.api_key)


def load_config(path: Path) -> Dict[str, Any]:
    """Read the YAML config from disk and validate its top-level type."""
    if not path.exists():
        raise RuntimeError(f'Config file not found: "{path}"')
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except Exception as e:
        raise RuntimeError(f'Failed to read config "{path}": {e}') from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f'Config file "{path}" must be a YAML mapping at top level')
    return data


def resolve_config_path(explicit: Optional[str] = None) -> Optional[Path]:
    """Resolve the config path from an explicit value, env override or default.

    Returns None when no explicit path is given and the default file is absent.
    """
    if explicit:
        return Path(explicit).expanduser().resolve()
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser().resolve()
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def _optional_section(cfg: Mapping[str, Any], name: str) -> Dict[str, Any]:
    """Fetch an optional mapping section or an empty mapping."""
    value = cfg.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RuntimeError(f'Config section "{name}" must be a mapping')
    return value


def get_buckets_config(cfg: Mapping[str, Any]) -> Any:
    """Return the raw bucket table, or None when the section is absent."""
    buckets = cfg.get("buckets")
    if buckets is not None and not isinstance(buckets, (dict, list)):
        raise RuntimeError('Config section "buckets" must be a mapping or a list')
    return buckets


def get_prompts(cfg: Mapping[str, Any]) -> Dict[str, Any]:
    """Return prompt overrides from the config."""
    return _optional_section(cfg, "prompts")


def _number(section: Mapping[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RuntimeError(f'rewrite.{key} must be a number')
    return float(value)


def get_rewrite_settings(
    cfg: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> RewriteSettings:
    """Resolve rewrite settings; tokens are read from the environment only."""
    env = os.environ if environ is None else environ
    section = _optional_section(cfg, "rewrite")
    provider = str(section.get("provider") or "openai").strip().lower()
    if provider not in PROVIDERS:
        raise RuntimeError(f'rewrite.provider must be one of {", ".join(PROVIDERS)}')
    token_env = str(section.get("token_env") or DEFAULT_TOKEN_ENV)
    api_key = (env.get(token_env) or "").strip() or None
    base_url = str(section.get("base_url") or DEFAULT_BASE_URLS[provider]).strip()
    return RewriteSettings(
        provider=provider,
        model=str(section.get("model") or DEFAULT_MODELS[provider]),
        base_url=base_url,
        api_key=api_key,
        timeout_s=_number(section, "timeout_s", 60.0),
        temperature=_number(section, "temperature", 0.2),
        system=get_prompts(cfg).get("rewrite_system"),
    )
