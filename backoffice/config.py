"""
backoffice.config — YAML Configuration Loader
==============================================

**Why this file exists:**
This module reads ``config.yaml`` for the soft settings of the batch jobs
(translation provider, batch size, target languages).  Secrets and
infrastructure URLs stay in environment variables; runtime tuning such as
``free_episodes_count`` lives in the ``app_settings`` table.

Usage::

    from backoffice.config import load_config

    cfg = load_config()                  # reads ./config.yaml by default
    print(cfg.translation_provider)      # "mock"
    print(len(cfg.target_languages))     # 30
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from backoffice.constants import (
    DEFAULT_TARGET_LANGUAGES,
    DEFAULT_TRANSLATION_BATCH_SIZE,
    DEFAULT_TRANSLATION_REQUEST_DELAY,
    TargetLanguage,
)

SUPPORTED_PROVIDERS = frozenset({"mock", "openai"})


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BackofficeConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str = "Backoffice"

    # Translation fan-out
    translation_provider: str = "mock"
    translation_model: str = "gpt-4o-mini"
    translation_batch_size: int = DEFAULT_TRANSLATION_BATCH_SIZE
    translation_request_delay: float = DEFAULT_TRANSLATION_REQUEST_DELAY
    target_languages: tuple[TargetLanguage, ...] = field(
        default=DEFAULT_TARGET_LANGUAGES
    )


def _parse_languages(raw: list | None) -> tuple[TargetLanguage, ...]:
    """Turn ``[{code, name}, ...]`` into :class:`TargetLanguage` tuples."""
    if raw is None:
        return DEFAULT_TARGET_LANGUAGES
    if not isinstance(raw, list):
        raise ValueError("translation.target_languages must be a list")

    languages: list[TargetLanguage] = []
    seen: set[str] = set()
    for item in raw:
        if isinstance(item, str):
            code, name = item, item
        elif isinstance(item, dict) and item.get("code"):
            code, name = str(item["code"]), str(item.get("name") or item["code"])
        else:
            raise ValueError(f"Invalid target language entry: {item!r}")
        if code in seen:
            raise ValueError(f"Duplicate target language code: {code}")
        seen.add(code)
        languages.append(TargetLanguage(code=code, name=name))
    return tuple(languages)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> BackofficeConfig:
    """Read *path* and return a :class:`BackofficeConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If a value is present but invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    translation: dict = raw.get("translation") or {}

    provider = str(translation.get("provider", "mock")).lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unknown translation provider '{provider}'. "
            f"Expected one of: {', '.join(sorted(SUPPORTED_PROVIDERS))}"
        )

    batch_size = int(translation.get("batch_size", DEFAULT_TRANSLATION_BATCH_SIZE))
    if batch_size <= 0:
        raise ValueError("translation.batch_size must be positive")

    request_delay = float(
        translation.get("request_delay", DEFAULT_TRANSLATION_REQUEST_DELAY)
    )
    if request_delay < 0:
        raise ValueError("translation.request_delay must not be negative")

    return BackofficeConfig(
        app_name=raw.get("app_name", "Backoffice"),
        translation_provider=provider,
        translation_model=translation.get("model", "gpt-4o-mini"),
        translation_batch_size=batch_size,
        translation_request_delay=request_delay,
        target_languages=_parse_languages(translation.get("target_languages")),
    )
