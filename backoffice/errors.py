"""
backoffice.errors — Exception Taxonomy
=======================================

Every failure a batch job can surface carries a machine-readable
:class:`ErrorKind` next to its human-readable message.  Job wrappers turn
these into ``{"success": False, "message": ..., "error_kind": ...}``.

Recovery policy per kind:

* ``configuration_error``: fatal, raised before any work starts.
* ``source_read_error``: fatal, events/translations could not be read.
* ``provider_error``: recovered locally with placeholder text.
* ``persistence_error``: fatal; batches committed earlier are kept.
* ``import_unit_error``: isolated to one locale-campaign.
* ``conflict``: a unique key (event type, (event, language) pair) is taken.
* ``not_found``: a referenced event or category does not exist.
* ``unknown_error``: an unexpected failure inside a job; the run stops.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.StrEnum):
    """Machine-readable failure categories."""
    CONFIGURATION = "configuration_error"
    SOURCE_READ = "source_read_error"
    PROVIDER = "provider_error"
    PERSISTENCE = "persistence_error"
    IMPORT_UNIT = "import_unit_error"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown_error"


class BackofficeError(Exception):
    """Base class for all errors raised by the service core."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class ConfigurationError(BackofficeError):
    """Required environment or configuration is missing or invalid."""

    kind = ErrorKind.CONFIGURATION


class SourceReadError(BackofficeError):
    """Events or existing translations could not be read."""

    kind = ErrorKind.SOURCE_READ


class ProviderError(BackofficeError):
    """The external translation provider failed for one text."""

    kind = ErrorKind.PROVIDER


class PersistenceError(BackofficeError):
    """A write to the database failed."""

    kind = ErrorKind.PERSISTENCE


class GalaxyFeedError(BackofficeError):
    """The Galaxy content feed could not be fetched or parsed."""

    kind = ErrorKind.IMPORT_UNIT


class ConflictError(BackofficeError):
    """A row with the same unique key already exists."""

    kind = ErrorKind.CONFLICT


class NotFoundError(BackofficeError):
    """A referenced row does not exist."""

    kind = ErrorKind.NOT_FOUND


class DuplicateTranslationError(ConflictError):
    """A translation for the (event, language) pair already exists."""

    def __init__(self, event_id: str, language_code: str) -> None:
        super().__init__(
            f"A translation for event {event_id} in '{language_code}' already exists"
        )
        self.event_id = event_id
        self.language_code = language_code


class CascadeDeleteError(PersistenceError):
    """A locale-campaign cleanup step failed part-way through.

    ``completed`` lists the steps that were committed before the failure;
    re-running the delete resumes from the failed step.
    """

    def __init__(self, step: str, completed: list[str], cause: Exception) -> None:
        super().__init__(
            f"Cascade delete failed at step '{step}' "
            f"(completed: {', '.join(completed) or 'none'}): {cause}"
        )
        self.step = step
        self.completed = completed
