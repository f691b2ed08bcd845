"""Initial schema: users, events, event participations, achievements.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(50) NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            role VARCHAR(16) NOT NULL DEFAULT 'student',
            student_id VARCHAR(20) UNIQUE,
            department VARCHAR(64),
            year VARCHAR(16),
            total_points INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            is_active BOOLEAN NOT NULL DEFAULT true,
            last_login TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_department_points
        ON users(department, total_points)
    """)

    # --- Events ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS events (
            id BIGSERIAL PRIMARY KEY,
            title VARCHAR(100) NOT NULL,
            description VARCHAR(500) NOT NULL,
            type VARCHAR(32) NOT NULL,
            points INTEGER NOT NULL,
            department VARCHAR(64) NOT NULL,
            date TIMESTAMPTZ NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'upcoming',
            max_participants INTEGER,
            created_by BIGINT NOT NULL REFERENCES users(id),
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_events_date_status
        ON events(date, status)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_events_department_type
        ON events(department, type)
    """)

    # --- Event participations ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS event_participations (
            id BIGSERIAL PRIMARY KEY,
            event_id BIGINT NOT NULL REFERENCES events(id),
            user_id BIGINT NOT NULL REFERENCES users(id),
            points_earned INTEGER NOT NULL DEFAULT 0,
            participated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_event_participations_event_user UNIQUE (event_id, user_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_event_participations_user
        ON event_participations(user_id)
    """)

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id BIGSERIAL PRIMARY KEY,
            title VARCHAR(100) NOT NULL,
            description VARCHAR(200) NOT NULL,
            category VARCHAR(32) NOT NULL,
            rarity VARCHAR(16) NOT NULL DEFAULT 'common',
            points INTEGER NOT NULL,
            requirement_type VARCHAR(16) NOT NULL,
            requirement_value INTEGER,
            requirement_description VARCHAR(200),
            icon VARCHAR(64) NOT NULL DEFAULT 'trophy',
            created_by BIGINT NOT NULL REFERENCES users(id),
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_achievements_category_rarity
        ON achievements(category, rarity)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_achievements_active
        ON achievements(is_active)
    """)

    # --- User achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id),
            achievement_id BIGINT NOT NULL REFERENCES achievements(id),
            points_awarded INTEGER NOT NULL DEFAULT 0,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_achievements_user_achievement UNIQUE (user_id, achievement_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_achievements")
    op.execute("DROP TABLE IF EXISTS achievements")
    op.execute("DROP TABLE IF EXISTS event_participations")
    op.execute("DROP TABLE IF EXISTS events")
    op.execute("DROP TABLE IF EXISTS users")
