#!/usr/bin/env python3
"""
Script to set up the notes database.

Creates all tables and, on PostgreSQL, the admin listing procedures
admin_get_all_profiles() / admin_get_all_notes() that the admin dashboard
tries before falling back to plain table reads.
"""

import asyncio
import sys

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import settings
from app.core.database import Base

# Import all models to ensure they are registered with SQLAlchemy
import app.models  # noqa: F401,E402

ADMIN_PROCEDURES = [
    """
    CREATE OR REPLACE FUNCTION admin_get_all_profiles()
    RETURNS SETOF profiles
    LANGUAGE sql STABLE AS $$
        SELECT * FROM profiles ORDER BY created_at DESC
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION admin_get_all_notes()
    RETURNS TABLE (
        id varchar,
        title varchar,
        content text,
        user_id varchar,
        created_at timestamptz,
        updated_at timestamptz,
        user_name varchar,
        user_email varchar
    )
    LANGUAGE sql STABLE AS $$
        SELECT n.id, n.title, n.content, n.user_id, n.created_at, n.updated_at,
               p.name, p.email
        FROM notes n
        LEFT JOIN profiles p ON p.id = n.user_id
        ORDER BY n.created_at DESC
    $$
    """,
]

DROP_PROCEDURES = [
    "DROP FUNCTION IF EXISTS admin_get_all_notes()",
    "DROP FUNCTION IF EXISTS admin_get_all_profiles()",
]


async def setup_database():
    """Create tables and admin procedures."""
    print(f"Setting up database: {settings.DATABASE_URL}")

    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            print("Created all database tables")

            if engine.dialect.name == "postgresql":
                for statement in ADMIN_PROCEDURES:
                    await conn.execute(text(statement))
                print("Created admin listing procedures")
            else:
                print("Skipping admin procedures (PostgreSQL only)")

        print("✅ Database setup complete!")

    except Exception as e:
        print(f"❌ Error setting up database: {e}")
        print("\nMake sure the database in DATABASE_URL is running and accessible.")
        return False
    finally:
        await engine.dispose()

    return True


async def drop_database():
    """Drop procedures and tables."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    try:
        async with engine.begin() as conn:
            if engine.dialect.name == "postgresql":
                for statement in DROP_PROCEDURES:
                    await conn.execute(text(statement))
            await conn.run_sync(Base.metadata.drop_all)

        print("✅ Dropped all database objects")

    except Exception as e:
        print(f"❌ Error dropping database objects: {e}")
        return False
    finally:
        await engine.dispose()

    return True


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "drop":
        ok = asyncio.run(drop_database())
    else:
        ok = asyncio.run(setup_database())
    sys.exit(0 if ok else 1)
