"""
backoffice.services.translation_provider — Text Translation Backends
======================================================================

Implementations of :class:`~backoffice.engine.fanout.TranslationProvider`.

* :class:`MockTranslationProvider`: development stand-in that appends the
  target language code (``"Daily Login [de]"``).
* :class:`OpenAITranslationProvider`: chat-completions translation through
  ``openai.AsyncOpenAI``.  Works with any OpenAI-compatible endpoint via
  ``OPENAI_BASE_URL`` (OpenRouter, Azure, a local gateway).

Providers are built explicitly and passed into the engine; nothing here is
a process-wide singleton.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable

import openai

from backoffice.config import BackofficeConfig
from backoffice.constants import TargetLanguage, placeholder_translation
from backoffice.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)


class MockTranslationProvider:
    """Returns ``"<text> [<target>]"`` after an optional simulated delay."""

    def __init__(self, delay: float = 0.0) -> None:
        self._delay = delay

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        if self._delay:
            await asyncio.sleep(self._delay)
        if source_language == target_language:
            return text
        logger.debug("Mock translating %r from %s to %s", text, source_language, target_language)
        return placeholder_translation(text, target_language)


class OpenAITranslationProvider:
    """Translate with an OpenAI-compatible chat model."""

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        *,
        model: str = "gpt-4o-mini",
        language_names: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._language_names = language_names or {}

    @classmethod
    def from_env(
        cls,
        *,
        model: str,
        languages: Iterable[TargetLanguage] = (),
    ) -> OpenAITranslationProvider:
        """Build a provider from ``OPENAI_API_KEY`` / ``OPENAI_BASE_URL``.

        Raises
        ------
        ConfigurationError
            If ``OPENAI_API_KEY`` is not set.
        """
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is not set; cannot use the 'openai' translation provider"
            )
        client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            timeout=30.0,
            max_retries=2,
        )
        return cls(
            client,
            model=model,
            language_names={lang.code: lang.name for lang in languages},
        )

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        if source_language == target_language or not text:
            return text

        source_name = self._language_names.get(source_language, source_language)
        target_name = self._language_names.get(target_language, target_language)

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {
                        "role": "system",
                        "content": (
                            f"You are a translator. Translate the following text from "
                            f"{source_name} to {target_name}. Only output the translation, "
                            "nothing else. Keep the same tone and style."
                        ),
                    },
                    {"role": "user", "content": text},
                ],
                temperature=0.3,
                max_tokens=1000,
            )
        except openai.OpenAIError as exc:
            raise ProviderError(
                f"{type(exc).__name__} translating to {target_language}: {exc}"
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        translated = (content or "").strip()
        if not translated:
            raise ProviderError(f"Empty translation returned for {target_language}")
        return translated


def build_translation_provider(cfg: BackofficeConfig):
    """Instantiate the provider named by ``translation.provider``."""
    if cfg.translation_provider == "openai":
        return OpenAITranslationProvider.from_env(
            model=cfg.translation_model,
            languages=cfg.target_languages,
        )
    if cfg.translation_provider == "mock":
        return MockTranslationProvider()
    raise ConfigurationError(f"Unknown translation provider '{cfg.translation_provider}'")
