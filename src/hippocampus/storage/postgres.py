"""PostgreSQL episode store.

Implementation: asyncpg connection pool. The ``episodes`` table carries the
uniqueness constraint that makes concurrent imports of the same repository
safe; asyncpg errors are translated to StoreError with their SQLSTATE code.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import asyncpg

from src.hippocampus.console import log
from src.hippocampus.errors import StoreError
from src.hippocampus.memory.models import Episode
from src.hippocampus.memory.taxonomy import PatternKey
from src.hippocampus.storage.base import EpisodeStore


@dataclass
class PostgresConfig:
    """Configuration for PostgreSQL connection."""
    host: str = "localhost"
    port: int = 5432
    database: str = "hippocampus"
    user: str = ""       # Empty = use current system user
    password: str = ""
    min_connections: int = 1
    max_connections: int = 10


CREATE_TABLES_SQL = """
-- Episodes reconstructed from repository imports
CREATE TABLE IF NOT EXISTS episodes (
    id TEXT PRIMARY KEY,
    repo_id TEXT NOT NULL,
    source_pr_number INT,
    title TEXT NOT NULL DEFAULT '',
    triggers JSONB NOT NULL DEFAULT '[]',
    what_happened TEXT DEFAULT '',
    the_pattern TEXT DEFAULT '',
    the_fix TEXT DEFAULT '',
    why_it_matters TEXT DEFAULT '',
    salience_score FLOAT DEFAULT 0,
    source_url TEXT DEFAULT '',
    pattern_key VARCHAR(64),
    created_at TIMESTAMPTZ DEFAULT NOW(),

    -- One episode per pull request within an import scope
    UNIQUE (repo_id, source_pr_number)
);

CREATE INDEX IF NOT EXISTS idx_episodes_repo ON episodes(repo_id);
CREATE INDEX IF NOT EXISTS idx_episodes_pattern ON episodes(pattern_key);
"""


class PostgresEpisodeStore(EpisodeStore):
    """asyncpg-backed episode storage."""

    name = "postgres"

    def __init__(self, config: PostgresConfig | None = None, pool: Any = None):
        self.config = config or PostgresConfig()
        self._pool = pool
        self._connected = pool is not None

    async def connect(self) -> None:
        """Establish connection pool and ensure tables exist."""
        if self._connected:
            return

        conn_kwargs = {
            "host": self.config.host,
            "port": self.config.port,
            "database": self.config.database,
            "min_size": self.config.min_connections,
            "max_size": self.config.max_connections,
        }
        if self.config.user:
            conn_kwargs["user"] = self.config.user
        if self.config.password:
            conn_kwargs["password"] = self.config.password

        try:
            self._pool = await asyncpg.create_pool(**conn_kwargs)
            async with self._pool.acquire() as conn:
                await conn.execute(CREATE_TABLES_SQL)
        except asyncpg.PostgresError as e:
            raise StoreError(str(e), code=str(e.sqlstate or "")) from e

        self._connected = True
        log("Store", f"Connected to PostgreSQL {self.config.host}:{self.config.port}/{self.config.database}")

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
        self._connected = False

    def is_available(self) -> bool:
        return self._connected and self._pool is not None

    @asynccontextmanager
    async def _connection(self):
        if not self.is_available():
            raise StoreError("PostgreSQL store is not connected", code="08003")
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except asyncpg.PostgresError as e:
            raise StoreError(str(e), code=str(e.sqlstate or "")) from e

    # ==================== Episode Operations ====================

    async def list_episode_rows(self, repo_id: str) -> list[dict[str, Any]]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                "SELECT id, source_pr_number FROM episodes WHERE repo_id = $1",
                repo_id,
            )
            return [
                {"id": str(row["id"]), "source_pr_number": row["source_pr_number"]}
                for row in rows
            ]

    async def insert_episode(self, episode: Episode) -> Episode:
        """Insert an episode.

        A second insert for the same (repo_id, source_pr_number) raises
        StoreError with code 23505.
        """
        async with self._connection() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO episodes (
                    id, repo_id, source_pr_number, title, triggers,
                    what_happened, the_pattern, the_fix, why_it_matters,
                    salience_score, source_url, pattern_key
                )
                VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7, $8, $9, $10, $11, $12)
                RETURNING *
                """,
                episode.id,
                episode.repo_id,
                episode.source_pr_number,
                episode.title,
                json.dumps(episode.triggers),
                episode.what_happened,
                episode.the_pattern,
                episode.the_fix,
                episode.why_it_matters,
                episode.salience_score,
                episode.source_url,
                episode.pattern_key.value if episode.pattern_key else None,
            )
            return self._row_to_episode(row)

    async def list_episodes(self, repo_id: str) -> list[Episode]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM episodes
                WHERE repo_id = $1
                ORDER BY source_pr_number ASC NULLS LAST, created_at ASC
                """,
                repo_id,
            )
            return [self._row_to_episode(row) for row in rows]

    async def count(self, repo_id: str = "") -> int:
        async with self._connection() as conn:
            if repo_id:
                return await conn.fetchval(
                    "SELECT COUNT(*) FROM episodes WHERE repo_id = $1", repo_id
                )
            return await conn.fetchval("SELECT COUNT(*) FROM episodes")

    # ==================== Helpers ====================

    def _row_to_episode(self, row: Any) -> Episode:
        """Convert database row to Episode."""
        triggers = row["triggers"]
        if isinstance(triggers, str):
            triggers = json.loads(triggers)
        created_at = row["created_at"]
        return Episode(
            id=str(row["id"]),
            repo_id=row["repo_id"],
            source_pr_number=row["source_pr_number"],
            title=row["title"] or "",
            triggers=list(triggers or []),
            what_happened=row["what_happened"] or "",
            the_pattern=row["the_pattern"] or "",
            the_fix=row["the_fix"] or "",
            why_it_matters=row["why_it_matters"] or "",
            salience_score=row["salience_score"] or 0.0,
            source_url=row["source_url"] or "",
            pattern_key=PatternKey.parse(row["pattern_key"]),
            created_at=created_at.timestamp() if created_at else 0.0,
        )
