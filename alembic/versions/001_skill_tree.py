"""Skill tree tables.

Creates profiles, categories, skills, sub_skills, challenges and
achievements. Every foreign key cascades on delete so removing a parent
removes its whole subtree.

Revision ID: 001_skill_tree
Revises:
Create Date: 2026-10-17
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_skill_tree"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Profiles ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id SERIAL CONSTRAINT pk_profiles PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            email VARCHAR(320) NOT NULL CONSTRAINT uq_profiles_email UNIQUE,
            credential_hash VARCHAR(256),
            bio TEXT NOT NULL DEFAULT '',
            avatar_url TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Categories (200 XP per level) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id SERIAL CONSTRAINT pk_categories PRIMARY KEY,
            profile_id INTEGER NOT NULL
                CONSTRAINT fk_categories_profile_id_profiles REFERENCES profiles(id) ON DELETE CASCADE,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            xp INTEGER NOT NULL DEFAULT 0 CONSTRAINT ck_categories_xp_non_negative CHECK (xp >= 0),
            level INTEGER NOT NULL DEFAULT 1 CONSTRAINT ck_categories_level_positive CHECK (level >= 1),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_categories_profile_id ON categories(profile_id)")

    # --- Skills (100 XP per level) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS skills (
            id SERIAL CONSTRAINT pk_skills PRIMARY KEY,
            profile_id INTEGER NOT NULL
                CONSTRAINT fk_skills_profile_id_profiles REFERENCES profiles(id) ON DELETE CASCADE,
            category_id INTEGER NOT NULL
                CONSTRAINT fk_skills_category_id_categories REFERENCES categories(id) ON DELETE CASCADE,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            xp INTEGER NOT NULL DEFAULT 0 CONSTRAINT ck_skills_xp_non_negative CHECK (xp >= 0),
            level INTEGER NOT NULL DEFAULT 1 CONSTRAINT ck_skills_level_positive CHECK (level >= 1),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_skills_profile_id ON skills(profile_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_skills_category_id ON skills(category_id)")

    # --- Sub-skills ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS sub_skills (
            id SERIAL CONSTRAINT pk_sub_skills PRIMARY KEY,
            skill_id INTEGER NOT NULL
                CONSTRAINT fk_sub_skills_skill_id_skills REFERENCES skills(id) ON DELETE CASCADE,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_sub_skills_skill_id ON sub_skills(skill_id)")

    # --- Challenges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenges (
            id SERIAL CONSTRAINT pk_challenges PRIMARY KEY,
            sub_skill_id INTEGER NOT NULL
                CONSTRAINT fk_challenges_sub_skill_id_sub_skills REFERENCES sub_skills(id) ON DELETE CASCADE,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            xp_reward INTEGER NOT NULL DEFAULT 10
                CONSTRAINT ck_challenges_xp_reward_positive CHECK (xp_reward >= 1),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_challenges_sub_skill_id ON challenges(sub_skill_id)")

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL CONSTRAINT pk_achievements PRIMARY KEY,
            challenge_id INTEGER NOT NULL
                CONSTRAINT fk_achievements_challenge_id_challenges REFERENCES challenges(id) ON DELETE CASCADE,
            profile_id INTEGER NOT NULL
                CONSTRAINT fk_achievements_profile_id_profiles REFERENCES profiles(id) ON DELETE CASCADE,
            completed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            notes TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_achievements_challenge_id ON achievements(challenge_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_achievements_profile_id ON achievements(profile_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS challenges CASCADE")
    op.execute("DROP TABLE IF EXISTS sub_skills CASCADE")
    op.execute("DROP TABLE IF EXISTS skills CASCADE")
    op.execute("DROP TABLE IF EXISTS categories CASCADE")
    op.execute("DROP TABLE IF EXISTS profiles CASCADE")
