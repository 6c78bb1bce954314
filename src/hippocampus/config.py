"""Settings loaded from the environment.

Entry points call ``load_dotenv()`` first, so values may also come from
a ``.env`` file in the working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from src.hippocampus.storage import (
    EpisodeStore,
    InMemoryEpisodeStore,
    PostgresConfig,
    PostgresEpisodeStore,
)

STORE_BACKENDS = ("memory", "postgres")


@dataclass
class ImportSettings:
    """Runtime settings for the import core."""
    store_backend: str = "memory"    # "memory" | "postgres"
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    verbose: bool = False


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def load_settings() -> ImportSettings:
    """Create settings from environment variables."""
    backend = os.getenv("HIPPOCAMPUS_STORE", "memory").lower()
    if backend not in STORE_BACKENDS:
        raise ValueError(
            f"HIPPOCAMPUS_STORE must be one of {', '.join(STORE_BACKENDS)}, got {backend!r}"
        )

    postgres = PostgresConfig(
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=int(os.getenv("POSTGRES_PORT", "5432")),
        database=os.getenv("POSTGRES_DB", "hippocampus"),
        user=os.getenv("POSTGRES_USER", ""),
        password=os.getenv("POSTGRES_PASSWORD", ""),
    )

    return ImportSettings(
        store_backend=backend,
        postgres=postgres,
        verbose=_env_flag("HIPPOCAMPUS_VERBOSE"),
    )


def create_store(settings: ImportSettings) -> EpisodeStore:
    """Instantiate the configured episode store (not yet connected)."""
    if settings.store_backend == "postgres":
        return PostgresEpisodeStore(settings.postgres)
    return InMemoryEpisodeStore()
