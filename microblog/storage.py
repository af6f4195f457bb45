"""
Tweet/User repository.

Responsibilities:
- Queries and writes against the tweets and users tables.
- Get-or-insert of users keyed by username.
- Transaction boundaries (commit/rollback) for callers.

Non-Responsibilities:
- No batching or retry policy.
- No logging.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.dialects.sqlite import insert

from .database import Tweet, User


class ConflictError(Exception):
    """Raised when a username insert conflicts and the existing row cannot be read back."""

    def __init__(self, username: str):
        super().__init__(f"Conflicting insert for username {username!r} and no row visible on re-read")
        self.username = username


class TweetStore:
    """Repository over a single SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def count_tweets_missing_user(self) -> int:
        return self.session.query(Tweet).filter(Tweet.user_id.is_(None)).count()

    def find_tweets_missing_user(self, after_id: int = 0, limit: Optional[int] = None) -> List[Tweet]:
        """
        Return tweets with no user reference, ordered by id.

        Args:
            after_id: Only return tweets with id greater than this
            limit: Maximum number of tweets to return (None = all)
        """
        query = (
            self.session.query(Tweet)
            .filter(Tweet.user_id.is_(None), Tweet.id > after_id)
            .order_by(Tweet.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def find_or_create_user(self, username: str) -> Tuple[User, bool]:
        """
        Get the user with this username, inserting it if missing.

        The insert is conditional on the unique username index, so concurrent
        callers never produce two rows; the loser of a race reads the
        winner's row instead.

        Args:
            username: Natural key, matched exactly

        Returns:
            Tuple of (user, created)

        Raises:
            ConflictError: If the insert was ignored but no row can be read
        """
        now = datetime.now()
        stmt = (
            insert(User.__table__)
            .values(username=username, bio="", created_at=now, updated_at=now)
            .on_conflict_do_nothing(index_elements=["username"])
        )
        result = self.session.execute(stmt)
        created = result.rowcount == 1

        user = self.session.query(User).filter_by(username=username).one_or_none()
        if user is None:
            raise ConflictError(username)
        return user, created

    def link_tweet_to_user(self, tweet_id: int, user_id: int) -> bool:
        """
        Point an unlinked tweet at a user.

        Only a tweet whose user_id is still NULL is updated, so a tweet
        linked by a concurrent run is left alone.

        Returns:
            True if this call linked the tweet, False if it was already
            linked or no longer exists
        """
        updated = (
            self.session.query(Tweet)
            .filter(Tweet.id == tweet_id, Tweet.user_id.is_(None))
            .update({Tweet.user_id: user_id}, synchronize_session="evaluate")
        )
        return updated == 1

    def count_users(self) -> int:
        return self.session.query(User).count()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def close(self) -> None:
        self.session.close()
