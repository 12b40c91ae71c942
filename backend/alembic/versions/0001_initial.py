"""initial odds entity schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

odds_format_enum = postgresql.ENUM("american", "decimal", name="odds_format", create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    postgresql.ENUM("american", "decimal", name="odds_format").create(bind, checkfirst=True)

    op.create_table(
        "sports",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_sports_key", "sports", ["key"], unique=True)

    op.create_table(
        "teams",
        sa.Column("id", sa.String(length=255), primary_key=True, nullable=False),
        sa.Column("sport_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("abbreviation", sa.String(length=8), nullable=False),
        sa.Column("external_ref", sa.String(length=255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_teams_sport_id", "teams", ["sport_id"], unique=False)

    op.create_table(
        "sport_events",
        sa.Column("id", sa.String(length=255), primary_key=True, nullable=False),
        sa.Column("sport_id", sa.BigInteger(), nullable=False),
        sa.Column("league_code", sa.String(length=64), nullable=False),
        sa.Column("home_team_id", sa.String(length=255), nullable=False),
        sa.Column("away_team_id", sa.String(length=255), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="scheduled"),
        sa.Column("external_ref", sa.String(length=255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_sport_events_sport_id", "sport_events", ["sport_id"], unique=False)
    op.create_index("ix_sport_events_league_code", "sport_events", ["league_code"], unique=False)
    op.create_index("ix_sport_events_starts_at", "sport_events", ["starts_at"], unique=False)
    op.create_index("ix_sport_events_external_ref", "sport_events", ["external_ref"], unique=False)

    op.create_table(
        "sportsbooks",
        sa.Column("id", sa.String(length=255), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=100), nullable=False),
        sa.Column("base_url", sa.String(length=255), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_sportsbooks_code", "sportsbooks", ["code"], unique=False)

    op.create_table(
        "markets",
        sa.Column("id", sa.String(length=512), primary_key=True, nullable=False),
        sa.Column("sport_event_id", sa.String(length=255), nullable=False),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("label", sa.String(length=120), nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_markets_sport_event_id", "markets", ["sport_event_id"], unique=False)
    op.create_index("ix_markets_key", "markets", ["key"], unique=False)

    op.create_table(
        "market_selections",
        sa.Column("id", sa.String(length=768), primary_key=True, nullable=False),
        sa.Column("market_id", sa.String(length=512), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("player_id", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("line_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("side", sa.String(length=255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_market_selections_market_id", "market_selections", ["market_id"], unique=False)

    op.create_table(
        "odds_snapshots",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("sportsbook_id", sa.String(length=255), nullable=False),
        sa.Column("selection_id", sa.String(length=768), nullable=False),
        sa.Column("odds_format", odds_format_enum, nullable=False),
        sa.Column("odds_value", sa.Float(), nullable=False),
        sa.Column("implied_prob", sa.Float(), nullable=False),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_odds_snapshots_sportsbook_id", "odds_snapshots", ["sportsbook_id"], unique=False)
    op.create_index("ix_odds_snapshots_selection_id", "odds_snapshots", ["selection_id"], unique=False)
    op.create_index("ix_odds_snapshots_fetched_at", "odds_snapshots", ["fetched_at"], unique=False)
    op.create_index(
        "ix_odds_snapshots_selection_book_fetched",
        "odds_snapshots",
        ["selection_id", "sportsbook_id", "fetched_at"],
        unique=False,
    )

    op.create_table(
        "odds_snapshots_archive",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("sportsbook_id", sa.String(length=255), nullable=False),
        sa.Column("selection_id", sa.String(length=768), nullable=False),
        sa.Column("odds_format", odds_format_enum, nullable=False),
        sa.Column("odds_value", sa.Float(), nullable=False),
        sa.Column("implied_prob", sa.Float(), nullable=False),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_odds_snapshots_archive_sportsbook_id", "odds_snapshots_archive", ["sportsbook_id"], unique=False
    )
    op.create_index(
        "ix_odds_snapshots_archive_selection_id", "odds_snapshots_archive", ["selection_id"], unique=False
    )
    op.create_index("ix_odds_snapshots_archive_fetched_at", "odds_snapshots_archive", ["fetched_at"], unique=False)


def downgrade() -> None:
    op.drop_table("odds_snapshots_archive")
    op.drop_table("odds_snapshots")
    op.drop_table("market_selections")
    op.drop_table("markets")
    op.drop_table("sportsbooks")
    op.drop_table("sport_events")
    op.drop_table("teams")
    op.drop_table("sports")
    postgresql.ENUM(name="odds_format").drop(op.get_bind(), checkfirst=True)
