#!/usr/bin/env python3
"""
Usage retention job.

Deletes usage_daily rows not updated within TTL_DAYS_USAGE_DOCS days.
Meant to run once a day from cron or a scheduled container.

Usage:
    uv run python run_cleanup.py
"""

import asyncio
import logging

from rich.console import Console

from modules.usage.service import get_quota_ledger
from shared.config import get_settings

console = Console()


async def cleanup() -> int:
    return await get_quota_ledger().cleanup_old_usage_records()


def main():
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    console.print("[bold]DecoDocs usage retention[/bold]")
    console.print(f"Deleting daily usage rows older than {settings.ttl_days_usage_docs} days")

    deleted = asyncio.run(cleanup())
    console.print(f"[green]✓[/green] Deleted {deleted} record(s)")


if __name__ == "__main__":
    main()
