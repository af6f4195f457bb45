"""
User backfill.

Moves the denormalized `tweets.username` string into the users table and
points every unlinked tweet at its owner via `tweets.user_id`.

Tweets are read in id-ordered batches and each tweet's get-or-insert + link
pair is committed on its own, so a run can be interrupted and restarted at
any point: linked tweets are simply no longer eligible.
"""

from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from .logger import StructuredLogger, get_logger
from .retry import RetryError, exponential_backoff
from .storage import ConflictError, TweetStore


def extract_users(
    store: TweetStore,
    batch_size: int = 500,
    max_retries: int = 3,
    retry_delay: float = 0.05,
    logger: Optional[StructuredLogger] = None,
) -> Dict[str, Any]:
    """
    Link every tweet lacking a user to the user named by its username,
    creating users as needed.

    Args:
        store: Repository to read and write through
        batch_size: Tweets fetched per query
        max_retries: Re-attempts for a username conflict before giving up on a tweet
        retry_delay: Initial backoff delay in seconds
        logger: Logger to report to (default: global logger); its metrics
            are reset so they describe this run only

    Returns:
        Summary dict with eligible, linked, already_linked (linked by a
        concurrent run first), users_created, users_total, skipped
        (tweet ids) and failed (tweet ids)
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    if logger is None:
        logger = get_logger()
    logger.reset_metrics()

    eligible = store.count_tweets_missing_user()
    logger.info(f"Extracting Users from {eligible} Tweets...")

    def on_conflict(attempt, exc, delay):
        store.rollback()
        logger.record_conflict()
        logger.warning("Username conflict, retrying", username=exc.username, attempt=attempt, delay=delay)

    @exponential_backoff(
        max_retries=max_retries,
        base_delay=retry_delay,
        exceptions=(ConflictError,),
        on_retry=on_conflict,
    )
    def link(tweet_id: int, username: str):
        user, created = store.find_or_create_user(username)
        linked = store.link_tweet_to_user(tweet_id, user.id)
        store.commit()
        return linked, created

    summary = {
        "eligible": eligible,
        "linked": 0,
        "already_linked": 0,
        "users_created": 0,
        "users_total": 0,
        "skipped": [],
        "failed": [],
    }

    last_id = 0
    while True:
        # Snapshot ids and keys; a rollback expires the ORM objects.
        batch = [
            (tweet.id, tweet.username)
            for tweet in store.find_tweets_missing_user(after_id=last_id, limit=batch_size)
        ]
        if not batch:
            break
        logger.record_scanned(len(batch))

        for tweet_id, username in batch:
            last_id = tweet_id

            if not username:
                summary["skipped"].append(tweet_id)
                logger.record_skipped()
                logger.warning("Tweet has no username, leaving unlinked", tweet_id=tweet_id)
                continue

            try:
                linked, created = link(tweet_id, username)
            except (RetryError, SQLAlchemyError) as e:
                store.rollback()
                cause = e.__cause__ if isinstance(e, RetryError) and e.__cause__ else e
                summary["failed"].append(tweet_id)
                logger.record_failure(type(cause).__name__)
                logger.error(
                    "Could not link tweet",
                    tweet_id=tweet_id,
                    username=username,
                    error=str(e),
                )
                continue

            if created:
                summary["users_created"] += 1
            logger.record_user(created)

            if linked:
                summary["linked"] += 1
                logger.record_linked()
            else:
                summary["already_linked"] += 1
                logger.record_already_linked()
                logger.debug("Tweet already linked by another run", tweet_id=tweet_id)

        logger.debug("Batch done", last_tweet_id=last_id, size=len(batch))

    summary["users_total"] = store.count_users()
    logger.info(f"Done. Created {summary['users_total']} Users.")
    logger.log_metrics_summary()
    return summary
