"""
backoffice.database.models — SQLAlchemy 2.0 Data Models
========================================================

Tables:
- event_categories                 Staff-defined grouping of gamification events
- gamification_events              Trackable user actions awarding coins
- gamification_event_translations  One localized rendering per (event, language)
- campaign_countries_languages     Locale-campaign ("trouple") scoping unit
- contents_series                  Imported series, per locale-campaign
- contents_series_episodes         Imported episodes, per locale-campaign
- contents_series_episodes_free    Free-to-view markers derived on import
- contents_rubrics                 Rubrics, per locale-campaign
- contents_series_rubrics          Series ↔ rubric links, per locale-campaign
- app_settings                     Key-value runtime configuration
- admin_log                        Append-only audit trail

Content tables are keyed by natural composite keys so the import can upsert
them.  Nothing cascades at the database level between a locale-campaign and
its content; see :mod:`backoffice.services.campaign_service`.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from backoffice.constants import TranslationStatus


def _uuid() -> str:
    return str(uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Backoffice ORM models."""


# ---------------------------------------------------------------------------
# Gamification: categories, events, translations
# ---------------------------------------------------------------------------
class EventCategory(Base):
    __tablename__ = "event_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    category_position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<EventCategory id={self.id} name={self.name!r}>"


class GamificationEvent(Base):
    """A trackable user action type that awards coins."""
    __tablename__ = "gamification_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    event_type_category: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("event_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    coins_reward: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, default=dict)
    event_position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    translations: Mapped[list[EventTranslation]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_gamification_events_position", "event_position"),
    )

    def __repr__(self) -> str:
        return f"<GamificationEvent id={self.id} type={self.event_type!r}>"


class EventTranslation(Base):
    """One localized rendering of a gamification event.

    At most one row exists per (event_id, language_code); the whole
    correctness contract of the fan-out engine rests on this constraint.
    """
    __tablename__ = "gamification_event_translations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("gamification_events.id", ondelete="CASCADE"),
        nullable=False,
    )
    language_code: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TranslationStatus.MANUAL.value
    )
    batch_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    event: Mapped[GamificationEvent] = relationship(back_populates="translations")

    __table_args__ = (
        UniqueConstraint(
            "event_id", "language_code", name="uq_event_translations_event_language"
        ),
        Index("ix_event_translations_language", "language_code"),
        Index("ix_event_translations_batch", "batch_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<EventTranslation event={self.event_id} "
            f"lang={self.language_code!r} status={self.status!r}>"
        )


# ---------------------------------------------------------------------------
# Locale campaigns ("trouples")
# ---------------------------------------------------------------------------
class CampaignLocale(Base):
    """Association of a campaign with a country and a language."""
    __tablename__ = "campaign_countries_languages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    campaign_id: Mapped[int] = mapped_column(Integer, nullable=False)
    country_code: Mapped[str | None] = mapped_column(String(8), default=None)
    language_code: Mapped[str | None] = mapped_column(String(16), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<CampaignLocale id={self.id} campaign={self.campaign_id} "
            f"{self.country_code}/{self.language_code}>"
        )


# ---------------------------------------------------------------------------
# Content catalog: written by the Galaxy import
# ---------------------------------------------------------------------------
class ContentSeries(Base):
    __tablename__ = "contents_series"

    serie_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    campaign_countries_languages_id: Mapped[str] = mapped_column(
        String(36), primary_key=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    url_covers: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ContentSeries id={self.serie_id} title={self.title!r}>"


class SeriesEpisode(Base):
    __tablename__ = "contents_series_episodes"

    series_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    episode_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    season_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    campaign_countries_languages_id: Mapped[str] = mapped_column(
        String(36), primary_key=True
    )
    episode_position: Mapped[int] = mapped_column(Integer, nullable=False)
    season_position: Mapped[int | None] = mapped_column(Integer, default=None)
    url_streaming_no_drm: Mapped[str | None] = mapped_column(Text, default=None)
    title: Mapped[str | None] = mapped_column(Text, default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    duration: Mapped[int | None] = mapped_column(Integer, default=None)
    product_year: Mapped[int | None] = mapped_column(Integer, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index(
            "ix_series_episodes_campaign_episode",
            "campaign_countries_languages_id", "episode_id",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<SeriesEpisode episode={self.episode_id} "
            f"pos={self.episode_position} campaign={self.campaign_countries_languages_id}>"
        )


class FreeEpisode(Base):
    """Marker row: the episode is free to view in this locale-campaign."""
    __tablename__ = "contents_series_episodes_free"

    episode_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    campaign_countries_languages_id: Mapped[str] = mapped_column(
        String(36), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<FreeEpisode episode={self.episode_id} "
            f"campaign={self.campaign_countries_languages_id}>"
        )


class ContentRubric(Base):
    __tablename__ = "contents_rubrics"

    id_rubric: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    campaign_countries_languages_id: Mapped[str] = mapped_column(
        String(36), primary_key=True
    )
    rubric_name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ContentRubric id={self.id_rubric} name={self.rubric_name!r}>"


class SeriesRubric(Base):
    __tablename__ = "contents_series_rubrics"

    serie_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    id_rubric: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    campaign_countries_languages_id: Mapped[str] = mapped_column(
        String(36), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<SeriesRubric serie={self.serie_id} rubric={self.id_rubric}>"


# ---------------------------------------------------------------------------
# AdminLog: append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(64), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_id", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor_id} action={self.action_type}>"


# ---------------------------------------------------------------------------
# AppSetting: key-value runtime configuration
# ---------------------------------------------------------------------------
class AppSetting(Base):
    """Key-value configuration store.

    Values are stored as JSON strings.  The import job reads
    ``free_episodes_count`` (``{"count": N}``) from here on every run.
    """
    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_app_settings_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<AppSetting key={self.key!r} category={self.category!r}>"
