"""Backfill text embeddings for items stored without one.

An item whose embedding call failed at creation keeps `textEmbedding: []` and
is invisible to matching. This script re-runs the embedding for those items.
It never runs matching or sends email.

Usage (from the project root):
    python -m losthub.scripts.reembed_items
    python -m losthub.scripts.reembed_items --limit 50
    python -m losthub.scripts.reembed_items --dry-run

Cron example:
    15 4 * * * cd /srv/losthub && /usr/bin/python3 -m losthub.scripts.reembed_items >> logs/reembed.log 2>&1
"""
from __future__ import annotations
import argparse
import asyncio
import sys

from losthub.scripts.logging_config import get_logger, setup_logging
from losthub.services import item_store, item_workflow
from losthub.services.firebase_app import init_firebase

logger = get_logger("reembed")


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Re-embed items with an empty textEmbedding")
    p.add_argument("--limit", type=int, default=None, help="max items to process")
    p.add_argument("--dry-run", action="store_true", help="only list the items that would be re-embedded")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(json_fmt=False)
    if not init_firebase():
        logger.error("reembed_abort firebase_not_configured")
        return 1

    if args.dry_run:
        items = item_store.list_items_without_embedding(args.limit)
        for it in items:
            logger.info("reembed_candidate id=%s status=%s name=%r", it["id"], it.get("status"), it.get("name"))
        logger.info("reembed_dry_run candidates=%d", len(items))
        return 0

    counts = asyncio.run(item_workflow.reembed_missing(limit=args.limit))
    return 0 if counts["failed"] == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
