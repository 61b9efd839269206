"""
backoffice.engine.fanout — Translation Fan-Out Engine
======================================================

Ensures every (event × target language) pair has exactly one translation
row.  Missing pairs are generated through an injected
:class:`TranslationProvider` and written through an injected
:class:`TranslationStore`; existing rows are never touched.

How a run works:
    1. Read all events and all existing translations from the store.
    2. Build the set of existing ``(event_id, language_code)`` pairs.
    3. Pick a source text per event: an existing ``fr`` translation, else
       ``en``, else the first one found.  Events without any translation
       get English placeholder text synthesized from ``event_type``.
    4. For each missing language, translate title, description and message
       (one provider call each).  A provider failure degrades that field
       to ``"<source> [<code>]"`` and the run goes on.
    5. Tag new rows with status ``auto`` and one batch id for the run.
    6. Persist in batches of ``batch_size``, each in its own transaction.

Membership is re-read from the store on every run, so a second run right
after the first creates nothing.  A failed batch aborts the run but keeps
the batches committed before it (at-least-once, not atomic).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from backoffice.constants import (
    DEFAULT_TRANSLATION_BATCH_SIZE,
    DEFAULT_TRANSLATION_REQUEST_DELAY,
    SOURCE_LANGUAGE_PREFERENCE,
    SYNTHESIZED_SOURCE_LANGUAGE,
    TargetLanguage,
    TranslationStatus,
    humanize_event_type,
    placeholder_translation,
)
from backoffice.database.engine import run_db
from backoffice.errors import BackofficeError, ConfigurationError, ErrorKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records exchanged with the store
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class EventRecord:
    """An event as seen by the engine."""

    id: str
    event_type: str
    category_id: str | None = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class TranslationRecord:
    """A translation row, existing or about to be inserted."""

    event_id: str
    language_code: str
    title: str = ""
    description: str = ""
    message: str = ""
    status: str = TranslationStatus.MANUAL.value
    batch_id: str | None = None
    id: str | None = None


@dataclass(frozen=True, slots=True)
class SourceText:
    """The text every missing language of one event is translated from."""

    language_code: str
    title: str
    description: str
    message: str


# ---------------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------------
class TranslationStore(Protocol):
    """Synchronous data access used by the engine (called via ``run_db``).

    Implementations raise :class:`~backoffice.errors.SourceReadError` from
    the list methods and :class:`~backoffice.errors.PersistenceError` from
    :meth:`insert_translations`.
    """

    def list_events(self) -> list[EventRecord]: ...

    def list_translations(self) -> list[TranslationRecord]: ...

    def insert_translations(self, rows: Sequence[TranslationRecord]) -> int: ...


class TranslationProvider(Protocol):
    """Text translation capability; raises ``ProviderError`` on failure."""

    async def translate(
        self, text: str, source_language: str, target_language: str,
    ) -> str: ...


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class FanOutStats:
    events_processed: int = 0
    translations_created: int = 0
    translations_skipped: int = 0   # events with nothing left to translate
    languages_skipped: int = 0      # (event, language) pairs already present
    provider_fallbacks: int = 0
    batches_processed: int = 0
    target_languages: int = 0


@dataclass(slots=True)
class FanOutResult:
    success: bool
    message: str
    batch_id: str
    stats: FanOutStats
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    error_kind: str | None = None

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "message": self.message,
            "batch_id": self.batch_id,
            "stats": asdict(self.stats),
            "timestamp": self.timestamp,
        }
        if self.error_kind is not None:
            data["error_kind"] = self.error_kind
        return data


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------
def existing_pairs(translations: Iterable[TranslationRecord]) -> set[tuple[str, str]]:
    """Return the ``(event_id, language_code)`` membership set."""
    return {(t.event_id, t.language_code) for t in translations}


def _source_rank(language_code: str) -> int:
    try:
        return SOURCE_LANGUAGE_PREFERENCE.index(language_code)
    except ValueError:
        return len(SOURCE_LANGUAGE_PREFERENCE)


def select_sources(translations: Iterable[TranslationRecord]) -> dict[str, SourceText]:
    """Pick the best existing translation per event to translate from.

    ``fr`` beats ``en`` beats anything else; among equals the first row
    encountered wins.
    """
    best: dict[str, TranslationRecord] = {}
    for row in translations:
        current = best.get(row.event_id)
        if current is None or _source_rank(row.language_code) < _source_rank(current.language_code):
            best[row.event_id] = row
    return {
        event_id: SourceText(
            language_code=row.language_code,
            title=row.title or "",
            description=row.description or "",
            message=row.message or "",
        )
        for event_id, row in best.items()
    }


def synthesize_source(event: EventRecord) -> SourceText:
    """Build English placeholder text from ``event_type``."""
    label = humanize_event_type(event.event_type)
    return SourceText(
        language_code=SYNTHESIZED_SOURCE_LANGUAGE,
        title=label,
        description=f"Description for the {label} event",
        message=f"Message for the {label} event",
    )


def missing_languages(
    event_id: str,
    languages: Sequence[TargetLanguage],
    present: set[tuple[str, str]],
) -> list[TargetLanguage]:
    """Target languages not yet translated for *event_id*, in target order."""
    return [lang for lang in languages if (event_id, lang.code) not in present]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class TranslationFanOut:
    """One configured fan-out job.

    Usage::

        fanout = TranslationFanOut(store, provider, cfg.target_languages)
        result = await fanout.run()
        print(result.to_dict())
    """

    def __init__(
        self,
        store: TranslationStore,
        provider: TranslationProvider,
        target_languages: Sequence[TargetLanguage],
        *,
        batch_size: int = DEFAULT_TRANSLATION_BATCH_SIZE,
        request_delay: float = DEFAULT_TRANSLATION_REQUEST_DELAY,
        batch_id_factory: Callable[[], str] = lambda: str(uuid4()),
    ) -> None:
        self._store = store
        self._provider = provider
        self._languages = tuple(target_languages)
        self._batch_size = batch_size
        self._request_delay = request_delay
        self._batch_id_factory = batch_id_factory

    def _validate(self) -> None:
        if not self._languages:
            raise ConfigurationError("No target languages configured")
        if self._batch_size <= 0:
            raise ConfigurationError(
                f"Translation batch size must be positive (got {self._batch_size})"
            )
        codes = [lang.code for lang in self._languages]
        if len(set(codes)) != len(codes):
            raise ConfigurationError("Target language codes must be unique")

    async def run(self) -> FanOutResult:
        """Execute the fan-out and return a structured result.

        Errors from the :mod:`backoffice.errors` taxonomy keep their kind in
        the failed result; any other exception is logged with its traceback
        and reported as ``unknown_error``.  Provider failures never reach
        this level: they degrade one field to placeholder text.
        """
        batch_id = self._batch_id_factory()
        stats = FanOutStats(target_languages=len(self._languages))

        try:
            self._validate()

            events = await run_db(self._store.list_events)
            existing = await run_db(self._store.list_translations)
            logger.info(
                "Fan-out %s: %d events, %d existing translations, %d target languages",
                batch_id, len(events), len(existing), len(self._languages),
            )

            present = existing_pairs(existing)
            sources = select_sources(existing)
            pending: list[TranslationRecord] = []

            for event in events:
                stats.events_processed += 1
                missing = missing_languages(event.id, self._languages, present)
                stats.languages_skipped += len(self._languages) - len(missing)

                if not missing:
                    stats.translations_skipped += 1
                    logger.debug("Event %s fully translated, skipping", event.event_type)
                    continue

                source = sources.get(event.id) or synthesize_source(event)
                logger.info(
                    "Event %s: translating from '%s' into %d languages",
                    event.event_type, source.language_code, len(missing),
                )

                for language in missing:
                    pending.append(
                        await self._translate_row(event, source, language, batch_id, stats)
                    )
                    present.add((event.id, language.code))

                    if len(pending) >= self._batch_size:
                        await self._flush(pending, stats)
                        pending = []

                    if self._request_delay:
                        await asyncio.sleep(self._request_delay)

            if pending:
                await self._flush(pending, stats)

        except BackofficeError as exc:
            logger.error(
                "Fan-out %s failed (%s): %s; %d translations already committed",
                batch_id, exc.kind, exc, stats.translations_created,
            )
            return FanOutResult(
                success=False,
                message=str(exc),
                batch_id=batch_id,
                stats=stats,
                error_kind=exc.kind.value,
            )
        except Exception as exc:
            logger.exception(
                "Fan-out %s stopped by an unexpected error; %d translations already committed",
                batch_id, stats.translations_created,
            )
            return FanOutResult(
                success=False,
                message=f"Unexpected error: {exc}",
                batch_id=batch_id,
                stats=stats,
                error_kind=ErrorKind.UNKNOWN.value,
            )

        logger.info("Fan-out %s complete: %s", batch_id, asdict(stats))
        return FanOutResult(
            success=True,
            message=(
                f"Successfully processed {stats.events_processed} events and "
                f"created {stats.translations_created} translations"
            ),
            batch_id=batch_id,
            stats=stats,
        )

    async def _translate_row(
        self,
        event: EventRecord,
        source: SourceText,
        language: TargetLanguage,
        batch_id: str,
        stats: FanOutStats,
    ) -> TranslationRecord:
        title = await self._translate_field(source.title, source.language_code, language, stats)
        description = await self._translate_field(
            source.description, source.language_code, language, stats,
        )
        message = await self._translate_field(source.message, source.language_code, language, stats)
        return TranslationRecord(
            event_id=event.id,
            language_code=language.code,
            title=title,
            description=description,
            message=message,
            status=TranslationStatus.AUTO.value,
            batch_id=batch_id,
        )

    async def _translate_field(
        self,
        text: str,
        source_language: str,
        language: TargetLanguage,
        stats: FanOutStats,
    ) -> str:
        if not text:
            return ""
        try:
            return await self._provider.translate(text, source_language, language.code)
        except Exception as exc:
            stats.provider_fallbacks += 1
            logger.warning(
                "Translation to %s (%s) failed, using placeholder: %s",
                language.name, language.code, exc,
            )
            return placeholder_translation(text, language.code)

    async def _flush(self, rows: list[TranslationRecord], stats: FanOutStats) -> None:
        inserted = await run_db(self._store.insert_translations, rows)
        stats.translations_created += inserted
        stats.batches_processed += 1
        logger.info(
            "Committed batch %d (%d rows, %d total)",
            stats.batches_processed, inserted, stats.translations_created,
        )
