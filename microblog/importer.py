"""
Import denormalized tweets from a JSON export.

Expected input:
    {"tweets": [{"username": "alice", "message": "hi", "created_at": "2020-08-20T21:18:32"}, ...]}

Tweets are stored with their username string only; linking them to users
is the job of the backfill.
"""

import json
from datetime import datetime
from pathlib import Path

from .database import Tweet, init_database, get_session


def parse_timestamp(ts_str):
    """Parse ISO timestamp string, handle missing timestamps."""
    if not ts_str:
        return datetime.now()
    try:
        return datetime.fromisoformat(ts_str)
    except (ValueError, TypeError):
        return datetime.now()


def import_tweets(json_path: Path, db_path: Path, dry_run: bool = False) -> dict:
    """
    Insert tweets from a JSON export.

    Args:
        json_path: Path to JSON export
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database

    Returns:
        Dict with imported and skipped counts
    """
    print(f"Loading tweets from {json_path}...")
    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise SystemExit(f"Expected a JSON object with a 'tweets' list in {json_path}, got {type(data).__name__}")
    entries = data.get("tweets", [])
    if not isinstance(entries, list):
        raise SystemExit(f"'tweets' in {json_path} must be a list, got {type(entries).__name__}")
    print(f"Found {len(entries)} tweets")

    if dry_run:
        print("\n[DRY RUN] Would import the following tweets:")
        for i, entry in enumerate(entries[:5], 1):
            if not isinstance(entry, dict):
                entry = {}
            print(f"  {i}. @{entry.get('username')}: {entry.get('message')}")
        if len(entries) > 5:
            print(f"  ... and {len(entries) - 5} more")
        return {"imported": 0, "skipped": 0}

    init_database(db_path)
    session = get_session(db_path)

    imported = 0
    skipped = 0
    try:
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("message"):
                print(f"Skipping entry {i}: missing message")
                skipped += 1
                continue

            created_at = parse_timestamp(entry.get("created_at"))
            session.add(Tweet(
                message=entry["message"],
                username=entry.get("username"),
                created_at=created_at,
                updated_at=created_at,
            ))
            imported += 1

        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    print(f"Imported: {imported}")
    print(f"Skipped:  {skipped}")
    return {"imported": imported, "skipped": skipped}
