"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

GAME_PHASES = ("negotiation", "declaration", "resolution")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _game_key_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "agents",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("agent_name", sa.String(length=50), nullable=False),
        sa.Column("webhook_url", sa.String(length=500), nullable=True),
        sa.Column("elo", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("games_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("games_won", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_agents_agent_name"), "agents", ["agent_name"], unique=True)
    op.create_index(op.f("ix_agents_id"), "agents", ["id"], unique=False)

    op.create_table(
        "games",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "status",
            sa.Enum("lobby", "active", "ended", name="gamestatus"),
            nullable=False,
        ),
        sa.Column("is_paused", sa.Boolean(), nullable=False),
        sa.Column("pause_reason", sa.String(length=500), nullable=True),
        sa.Column("current_turn", sa.Integer(), nullable=False),
        sa.Column("current_phase", sa.Enum(*GAME_PHASES, name="gamephase"), nullable=True),
        sa.Column("phase_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("phase_deadline_seconds", sa.Integer(), nullable=False),
        sa.Column("min_players", sa.Integer(), nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("max_turns", sa.Integer(), nullable=False),
        sa.Column("fallback_action", sa.String(length=32), nullable=False),
        sa.Column("seed", sa.Integer(), nullable=False),
        sa.Column("world_tension", sa.Integer(), nullable=False),
        sa.Column("coalition_warned", sa.Boolean(), nullable=False),
        sa.Column("winner_country_key", sa.String(length=64), nullable=True),
        sa.Column("end_reason", sa.String(length=64), nullable=True),
        _created_at(),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_games_id"), "games", ["id"], unique=False)

    op.create_table(
        "countries",
        *_game_key_columns(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("agent_id", sa.Integer(), nullable=True),
        sa.Column("territory", sa.Integer(), nullable=False),
        sa.Column("military", sa.Integer(), nullable=False),
        sa.Column("naval", sa.Integer(), nullable=False),
        sa.Column("gdp", sa.Integer(), nullable=False),
        sa.Column("money", sa.Integer(), nullable=False),
        sa.Column("tech", sa.Integer(), nullable=False),
        sa.Column("stability", sa.Integer(), nullable=False),
        sa.Column("spy_tokens", sa.Integer(), nullable=False),
        sa.Column("capital_province_key", sa.String(length=64), nullable=True),
        sa.Column("supply_penalty", sa.Float(), nullable=False),
        sa.Column("forced_neutral_turn", sa.Integer(), nullable=True),
        sa.Column("is_eliminated", sa.Boolean(), nullable=False),
        sa.Column("elimination_cause", sa.String(length=16), nullable=True),
        sa.Column("eliminated_turn", sa.Integer(), nullable=True),
        sa.Column("annexed_by", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(["agent_id"], ["agents.id"]),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "key", name="uq_country_game_key"),
    )
    op.create_index(op.f("ix_countries_id"), "countries", ["id"], unique=False)
    op.create_index(op.f("ix_countries_game_id"), "countries", ["game_id"], unique=False)

    op.create_table(
        "provinces",
        *_game_key_columns(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("owner_key", sa.String(length=64), nullable=False),
        sa.Column("original_owner_key", sa.String(length=64), nullable=False),
        sa.Column("terrain", sa.String(length=16), nullable=False),
        sa.Column("gdp_value", sa.Integer(), nullable=False),
        sa.Column("population", sa.Integer(), nullable=False),
        sa.Column("troops", sa.Integer(), nullable=False),
        sa.Column("is_capital", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "key", name="uq_province_game_key"),
    )
    op.create_index(op.f("ix_provinces_id"), "provinces", ["id"], unique=False)
    op.create_index(op.f("ix_provinces_game_id"), "provinces", ["game_id"], unique=False)

    op.create_table(
        "pacts",
        *_game_key_columns(),
        sa.Column("kind", sa.Enum("alliance", "union", name="pactkind"), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("abbreviation", sa.String(length=16), nullable=False),
        sa.Column("color", sa.String(length=16), nullable=False),
        sa.Column("members", sa.JSON(), nullable=False),
        sa.Column("formed_turn", sa.Integer(), nullable=False),
        sa.Column("dissolved_turn", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "key", name="uq_pact_game_key"),
    )
    op.create_index(op.f("ix_pacts_id"), "pacts", ["id"], unique=False)
    op.create_index(op.f("ix_pacts_game_id"), "pacts", ["game_id"], unique=False)

    op.create_table(
        "wars",
        *_game_key_columns(),
        sa.Column("attacker_key", sa.String(length=64), nullable=False),
        sa.Column("defender_key", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("start_turn", sa.Integer(), nullable=False),
        sa.Column("end_turn", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "key", name="uq_war_game_key"),
    )
    op.create_index(op.f("ix_wars_id"), "wars", ["id"], unique=False)
    op.create_index(op.f("ix_wars_game_id"), "wars", ["game_id"], unique=False)

    op.create_table(
        "ultimatums",
        *_game_key_columns(),
        sa.Column("sender_key", sa.String(length=64), nullable=False),
        sa.Column("target_key", sa.String(length=64), nullable=False),
        sa.Column("demand", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("province_key", sa.String(length=64), nullable=True),
        sa.Column("issued_turn", sa.Integer(), nullable=False),
        sa.Column("expires_turn", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "accepted",
                "enforced_concession",
                "enforced_war",
                "void",
                name="ultimatumstatus",
            ),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "key", name="uq_ultimatum_game_key"),
    )
    op.create_index(op.f("ix_ultimatums_id"), "ultimatums", ["id"], unique=False)
    op.create_index(op.f("ix_ultimatums_game_id"), "ultimatums", ["game_id"], unique=False)

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("country_key", sa.String(length=64), nullable=False),
        sa.Column("turn", sa.Integer(), nullable=False),
        sa.Column(
            "phase",
            postgresql.ENUM(*GAME_PHASES, name="gamephase", create_type=False),
            nullable=False,
        ),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("revision", sa.Integer(), nullable=False),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "country_key", "turn", "phase", name="uq_submission_slot"),
    )
    op.create_index(op.f("ix_submissions_id"), "submissions", ["id"], unique=False)
    op.create_index(op.f("ix_submissions_game_id"), "submissions", ["game_id"], unique=False)

    op.create_table(
        "game_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("turn", sa.Integer(), nullable=False),
        sa.Column("phase", sa.String(length=32), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("icon", sa.String(length=16), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        sa.Column("visible_to", sa.JSON(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_game_events_game_id"), "game_events", ["game_id"], unique=False)
    op.create_index(op.f("ix_game_events_turn"), "game_events", ["turn"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_game_events_turn"), table_name="game_events")
    op.drop_index(op.f("ix_game_events_game_id"), table_name="game_events")
    op.drop_table("game_events")
    op.drop_index(op.f("ix_submissions_game_id"), table_name="submissions")
    op.drop_index(op.f("ix_submissions_id"), table_name="submissions")
    op.drop_table("submissions")
    for table in ("ultimatums", "wars", "pacts", "provinces", "countries"):
        op.drop_index(op.f(f"ix_{table}_game_id"), table_name=table)
        op.drop_index(op.f(f"ix_{table}_id"), table_name=table)
        op.drop_table(table)
    op.drop_index(op.f("ix_games_id"), table_name="games")
    op.drop_table("games")
    op.drop_index(op.f("ix_agents_id"), table_name="agents")
    op.drop_index(op.f("ix_agents_agent_name"), table_name="agents")
    op.drop_table("agents")
    sa.Enum(name="ultimatumstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="pactkind").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="gamephase").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="gamestatus").drop(op.get_bind(), checkfirst=True)
