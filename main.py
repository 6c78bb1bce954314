"""Hippocampus - feed a captured import stream through the import pipeline."""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Load environment variables from .env file
load_dotenv()

from src.hippocampus.config import create_store, load_settings
from src.hippocampus.pipeline import ImportPipeline
from src.hippocampus.storage import IdempotentEpisodeWriter
from src.hippocampus.stream import event_pr_number


console = Console()


def read_chunks(source: str, chunk_size: int) -> list[str]:
    """Split a captured stream into fixed-size chunks, as a network read would."""
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    if chunk_size <= 0:
        return [text]
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


def print_items(items) -> None:
    """Print feed items as a table."""
    table = Table(title="Import feed")
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("PR", justify="right")
    table.add_column("Pattern")
    table.add_column("Outcome")
    table.add_column("Delay", justify="right")

    for item in items:
        pr = event_pr_number(item.event)
        table.add_row(
            str(item.index),
            item.event.type,
            "" if pr is None else str(pr),
            item.pattern_label or "",
            item.outcome.value if item.outcome else "",
            f"{item.delay:.3f}s",
        )

    console.print(table)


async def run(source: str, repo_id: str, chunk_size: int) -> int:
    settings = load_settings()
    store = create_store(settings)
    await store.connect()

    try:
        pipeline = ImportPipeline(IdempotentEpisodeWriter(store), repo_id)
        items = []
        for chunk in read_chunks(source, chunk_size):
            items.extend(await pipeline.process(chunk))
        items.extend(await pipeline.finish())
    finally:
        await store.disconnect()

    print_items(items)
    summary = pipeline.summary()
    console.print(Panel.fit(
        f"Repository: {summary['repo_id']}\n"
        f"Mode: {summary['mode']}\n"
        f"Events: {summary['events']}\n"
        f"Episodes: {summary['episodes']} "
        f"(created {summary['created']}, duplicates {summary['duplicates']})\n"
        f"Store: {store.name}",
        title="Summary"
    ))
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Ingest a captured import event stream")
    parser.add_argument("source", help="Path to a captured SSE stream, or - for stdin")
    parser.add_argument("--repo", default=os.getenv("REPO_ID", ""), help="Repository id (owner/name)")
    parser.add_argument("--chunk-size", type=int, default=256, help="Characters per simulated read")
    args = parser.parse_args()

    if not args.repo:
        parser.error("--repo is required (or set REPO_ID)")

    try:
        return asyncio.run(run(args.source, args.repo, args.chunk_size))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if os.getenv("DEBUG"):
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
