"""
backoffice.constants — Shared Constants & Helpers
===================================================

Single source of truth for the default target-language list, translation
statuses, and setting keys.  The language list here is only the *default*;
jobs receive the list explicitly from :class:`~backoffice.config.BackofficeConfig`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Target languages
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TargetLanguage:
    """One locale the fan-out engine translates into."""

    code: str
    name: str


DEFAULT_TARGET_LANGUAGES: tuple[TargetLanguage, ...] = (
    TargetLanguage("af", "Afrikaans"),
    TargetLanguage("am", "Amharic"),
    TargetLanguage("ar", "Arabic"),
    TargetLanguage("bn", "Bengali"),
    TargetLanguage("nl", "Dutch"),
    TargetLanguage("en", "English"),
    TargetLanguage("fil", "Filipino, Tagalog"),
    TargetLanguage("fr", "French"),
    TargetLanguage("de", "German"),
    TargetLanguage("gu", "Gujarati"),
    TargetLanguage("ha", "Hausa"),
    TargetLanguage("hi", "Hindi"),
    TargetLanguage("id", "Indonesian"),
    TargetLanguage("ja", "Japanese"),
    TargetLanguage("kn", "Kannada"),
    TargetLanguage("ms", "Malay"),
    TargetLanguage("ml", "Malayalam"),
    TargetLanguage("mr", "Marathi"),
    TargetLanguage("pt-BR", "Portuguese (Brazil)"),
    TargetLanguage("pt-PT", "Portuguese (Portugal)"),
    TargetLanguage("pa", "Punjabi"),
    TargetLanguage("si", "Sinhala"),
    TargetLanguage("so", "Somali"),
    TargetLanguage("es", "Spanish"),
    TargetLanguage("sw", "Swahili"),
    TargetLanguage("ta", "Tamil"),
    TargetLanguage("te", "Telugu"),
    TargetLanguage("th", "Thai"),
    TargetLanguage("ur", "Urdu"),
    TargetLanguage("vi", "Vietnamese"),
)

# Source translations are picked in this order before "any language".
SOURCE_LANGUAGE_PREFERENCE: tuple[str, ...] = ("fr", "en")

# Language of the placeholder text synthesized from ``event_type``.
SYNTHESIZED_SOURCE_LANGUAGE = "en"


class TranslationStatus(enum.StrEnum):
    """Lifecycle tag on every translation row."""
    AUTO = "auto"
    MANUAL = "manual"
    PENDING = "pending"


# ---------------------------------------------------------------------------
# Fan-out tuning defaults
# ---------------------------------------------------------------------------
DEFAULT_TRANSLATION_BATCH_SIZE = 50
DEFAULT_TRANSLATION_REQUEST_DELAY = 0.05


# ---------------------------------------------------------------------------
# app_settings keys
# ---------------------------------------------------------------------------
FREE_EPISODES_COUNT_KEY = "free_episodes_count"
DEFAULT_FREE_EPISODES_COUNT = 3


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------
def humanize_event_type(event_type: str) -> str:
    """Turn an ``event_type`` code into a readable label.

    ``"daily_login"`` → ``"Daily Login"``.  Empty segments from doubled
    underscores are dropped.
    """
    words = [w for w in event_type.replace("-", "_").split("_") if w]
    return " ".join(w.capitalize() for w in words) or event_type


def placeholder_translation(text: str, language_code: str) -> str:
    """Degraded translation used when the provider fails: ``"text [de]"``."""
    return f"{text} [{language_code}]"
