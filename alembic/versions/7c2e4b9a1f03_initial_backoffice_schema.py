"""Initial backoffice schema

Revision ID: 7c2e4b9a1f03
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7c2e4b9a1f03"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps(*, created: bool = True) -> list[sa.Column]:
    cols = []
    if created:
        cols.append(sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
        ))
    cols.append(sa.Column(
        "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
    ))
    return cols


def upgrade() -> None:
    """Create gamification, content, settings and audit tables."""
    # --- gamification ---
    op.create_table(
        "event_categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("category_position", sa.Integer(), server_default="0"),
        *_timestamps(),
    )
    op.create_table(
        "gamification_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_type", sa.String(100), nullable=False, unique=True),
        sa.Column(
            "event_type_category",
            sa.String(36),
            sa.ForeignKey("event_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("coins_reward", sa.Integer(), server_default="0"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("metadata", postgresql.JSONB()),
        sa.Column("event_position", sa.Integer(), server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_gamification_events_position", "gamification_events", ["event_position"])

    op.create_table(
        "gamification_event_translations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "event_id",
            sa.String(36),
            sa.ForeignKey("gamification_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("language_code", sa.String(16), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(16), nullable=False, server_default="manual"),
        sa.Column("batch_id", sa.String(36), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "event_id", "language_code", name="uq_event_translations_event_language",
        ),
    )
    op.create_index(
        "ix_event_translations_language", "gamification_event_translations", ["language_code"],
    )
    op.create_index(
        "ix_event_translations_batch", "gamification_event_translations", ["batch_id"],
    )

    # --- locale-campaigns & content ---
    op.create_table(
        "campaign_countries_languages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("country_code", sa.String(8)),
        sa.Column("language_code", sa.String(16)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "contents_series",
        sa.Column("serie_id", sa.BigInteger(), primary_key=True),
        sa.Column("campaign_countries_languages_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("url_covers", sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        "contents_series_episodes",
        sa.Column("series_id", sa.BigInteger(), primary_key=True),
        sa.Column("episode_id", sa.BigInteger(), primary_key=True),
        sa.Column("season_id", sa.BigInteger(), primary_key=True),
        sa.Column("campaign_countries_languages_id", sa.String(36), primary_key=True),
        sa.Column("episode_position", sa.Integer(), nullable=False),
        sa.Column("season_position", sa.Integer()),
        sa.Column("url_streaming_no_drm", sa.Text()),
        sa.Column("title", sa.Text()),
        sa.Column("description", sa.Text()),
        sa.Column("duration", sa.Integer()),
        sa.Column("product_year", sa.Integer()),
        *_timestamps(),
    )
    op.create_index(
        "ix_series_episodes_campaign_episode",
        "contents_series_episodes",
        ["campaign_countries_languages_id", "episode_id"],
    )
    op.create_table(
        "contents_series_episodes_free",
        sa.Column("episode_id", sa.BigInteger(), primary_key=True),
        sa.Column("campaign_countries_languages_id", sa.String(36), primary_key=True),
        *_timestamps(),
    )
    op.create_table(
        "contents_rubrics",
        sa.Column("id_rubric", sa.BigInteger(), primary_key=True),
        sa.Column("campaign_countries_languages_id", sa.String(36), primary_key=True),
        sa.Column("rubric_name", sa.String(200), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "contents_series_rubrics",
        sa.Column("serie_id", sa.BigInteger(), primary_key=True),
        sa.Column("id_rubric", sa.BigInteger(), primary_key=True),
        sa.Column("campaign_countries_languages_id", sa.String(36), primary_key=True),
        *_timestamps(),
    )

    # --- settings & audit ---
    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value_json", sa.Text(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("description", sa.Text()),
        *_timestamps(created=False),
    )
    op.create_index("ix_app_settings_category", "app_settings", ["category"])

    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(100), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(64), nullable=False),
        sa.Column("target_id", sa.String(100)),
        sa.Column("before_snapshot", postgresql.JSONB()),
        sa.Column("after_snapshot", postgresql.JSONB()),
        sa.Column("reason", sa.Text()),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_admin_log_actor_time", "admin_log", ["actor_id", "timestamp"])
    op.create_index(
        "ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"],
    )


def downgrade() -> None:
    """Drop every backoffice table."""
    op.drop_table("admin_log")
    op.drop_table("app_settings")
    op.drop_table("contents_series_rubrics")
    op.drop_table("contents_rubrics")
    op.drop_table("contents_series_episodes_free")
    op.drop_table("contents_series_episodes")
    op.drop_table("contents_series")
    op.drop_table("campaign_countries_languages")
    op.drop_table("gamification_event_translations")
    op.drop_table("gamification_events")
    op.drop_table("event_categories")
