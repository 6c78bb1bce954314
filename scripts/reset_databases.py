#!/usr/bin/env python3
"""Reset the PostgreSQL episode schema.

Drops the episodes table and recreates it with the current schema,
including the (repo_id, source_pr_number) uniqueness constraint.
"""

import asyncio
from pathlib import Path

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()

from src.hippocampus.config import load_settings
from src.hippocampus.storage.postgres import CREATE_TABLES_SQL


async def reset_postgres() -> bool:
    """Drop and recreate the episodes table."""
    print("\n=== Resetting PostgreSQL ===")

    import asyncpg

    config = load_settings().postgres
    conn_kwargs = {
        "host": config.host,
        "port": config.port,
        "database": config.database,
    }
    if config.user:
        conn_kwargs["user"] = config.user
    if config.password:
        conn_kwargs["password"] = config.password

    try:
        print(f"Connecting to PostgreSQL at {config.host}:{config.port}/{config.database}...")
        conn = await asyncpg.connect(**conn_kwargs)
    except (OSError, asyncpg.PostgresError) as e:
        print(f"✗ PostgreSQL reset failed: {e}")
        return False

    try:
        print("  Dropping episodes table...")
        await conn.execute("DROP TABLE IF EXISTS episodes CASCADE;")
        print("  Creating episodes table...")
        await conn.execute(CREATE_TABLES_SQL)
    except asyncpg.PostgresError as e:
        print(f"✗ PostgreSQL reset failed: {e}")
        return False
    finally:
        await conn.close()

    print("✓ PostgreSQL reset complete")
    return True


async def main():
    print("=" * 60)
    print("Database Reset Script")
    print("=" * 60)
    print("\nThis will DELETE ALL imported episodes in PostgreSQL!")
    print("Press Ctrl+C within 3 seconds to cancel...")

    try:
        await asyncio.sleep(3)
    except KeyboardInterrupt:
        print("\nCancelled.")
        return

    print("\nProceeding with reset...")

    if await reset_postgres():
        print("\n✓ Episode schema reset successfully!")
    else:
        print("\n⚠ Reset failed. Check the errors above.")


if __name__ == "__main__":
    asyncio.run(main())
