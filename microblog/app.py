import argparse
from pathlib import Path

from . import __version__
from .backfill import extract_users
from .database import init_database, get_session
from .env import load_env, load_settings
from .importer import import_tweets
from .logger import get_logger
from .storage import TweetStore
from .verify import verify_backfill


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.db) if args.db else args.settings.db_path


def _require_db(db_path: Path) -> None:
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}")


def cmd_init_db(args: argparse.Namespace) -> None:
    db_path = _db_path(args)
    init_database(db_path)
    print(f"Initialized database at {db_path}")


def cmd_import_tweets(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    import_tweets(input_path, _db_path(args), dry_run=args.dry_run)


def cmd_extract_users(args: argparse.Namespace) -> None:
    settings = args.settings
    db_path = _db_path(args)
    _require_db(db_path)

    logger = get_logger(level=settings.log_level, log_dir=settings.log_dir)
    batch_size = args.batch_size if args.batch_size is not None else settings.batch_size
    if batch_size < 1:
        raise SystemExit("--batch-size must be at least 1")
    store = TweetStore(get_session(db_path))
    try:
        extract_users(store, batch_size=batch_size, max_retries=settings.max_retries, logger=logger)
    finally:
        store.close()


def cmd_verify(args: argparse.Namespace) -> None:
    db_path = _db_path(args)
    _require_db(db_path)

    session = get_session(db_path)
    try:
        problems = verify_backfill(session)
    finally:
        session.close()

    if not problems:
        print("All tweets linked to their users.")
        return

    print(f"Found {len(problems)} problems:")
    for p in problems[:20]:
        detail = ", ".join(f"{k}={v}" for k, v in p.items() if k not in ("tweet_id", "problem"))
        print(f" - tweet {p['tweet_id']}: {p['problem']} ({detail})")
    if len(problems) > 20:
        print(f" ... and {len(problems) - 20} more")
    raise SystemExit(1)


def main(argv=None):
    # Load .env if present (MICROBLOG_DB, MICROBLOG_LOG_LEVEL, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="microblog", description="Microblog data tasks")
    parser.add_argument("--version", action="store_true", help="Show version")

    db_help = "Path to SQLite database (default: $MICROBLOG_DB or data/microblog.db)"
    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("init-db", help="Create the database and tables")
    ini.add_argument("--db", help=db_help)
    ini.set_defaults(func=cmd_init_db)

    imp = subparsers.add_parser("import-tweets", help="Import denormalized tweets from a JSON export")
    imp.add_argument("--input", required=True, help="Path to JSON export")
    imp.add_argument("--db", help=db_help)
    imp.add_argument("--dry-run", action="store_true", help="Show what would be imported without writing")
    imp.set_defaults(func=cmd_import_tweets)

    ext = subparsers.add_parser("extract-users", help="Create users from tweet usernames and link tweets to them")
    ext.add_argument("--db", help=db_help)
    ext.add_argument("--batch-size", type=int, help="Tweets per batch (default: $MICROBLOG_BATCH_SIZE or 500)")
    ext.set_defaults(func=cmd_extract_users)

    ver = subparsers.add_parser("verify", help="Check every tweet is linked to its user")
    ver.add_argument("--db", help=db_help)
    ver.set_defaults(func=cmd_verify)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.settings = load_settings()
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
