#!/usr/bin/env python3
"""
Seed the document store with the default site content.

Usage: python scripts/seed.py [--force]
Requires: MONGODB_URI in the environment (or .env)
"""
import argparse
import os
import sys

# Ensure charity_api is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from charity_api.config import load_config
from charity_api.models.seed import DEFAULT_DONATION_CONTENT, SEED_RECORDS
from charity_api.models.store import DONATION_CONTENT, RecordStore


def seed(store: RecordStore, force: bool = False) -> int:
    """Insert defaults into empty collections (or replace them with --force). Returns records written."""
    written = 0
    for name, records in SEED_RECORDS.items():
        col = store.collection(name)
        if col.count() > 0 and not force:
            print(f"  {name}: already has data, skipping")
            continue
        for record in records:
            if col.get_by_id(record["id"]) is not None:
                col.replace(record["id"], record)
            else:
                col.create(record)
            written += 1
        print(f"  {name}: {len(records)} record(s)")

    content = store.collection(DONATION_CONTENT)
    if content.count() == 0 or force:
        content.put_singleton(DEFAULT_DONATION_CONTENT)
        written += 1
        print(f"  {DONATION_CONTENT}: default content")
    return written


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument(
        "--force", action="store_true", help="overwrite seeded records that already exist"
    )
    args = ap.parse_args()

    cfg = load_config()
    if not cfg["MONGODB_URI"]:
        print("MONGODB_URI is not set.")
        sys.exit(1)

    store = RecordStore(cfg["MONGODB_URI"], cfg["MONGODB_DB_NAME"])
    try:
        written = seed(store, force=args.force)
    finally:
        store.close()
    print(f"Seeded successfully ({written} write(s)).")


if __name__ == "__main__":
    main()
