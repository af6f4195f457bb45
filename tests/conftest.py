"""
Pytest configuration and shared fixtures.
"""

import json
import pytest
from pathlib import Path

from microblog.database import Tweet, User, init_database, get_session
from microblog.logger import StructuredLogger, reset_logger
from microblog.storage import TweetStore


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Create an empty database and return its path."""
    path = tmp_path / "microblog.db"
    init_database(path)
    return path


@pytest.fixture
def db_session(db_path):
    """Return a session on the temporary database."""
    session = get_session(db_path)
    yield session
    session.close()


@pytest.fixture
def store(db_session) -> TweetStore:
    """Return a TweetStore on the temporary database."""
    return TweetStore(db_session)


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no handlers of its own; records still reach caplog."""
    return StructuredLogger(name="microblog.test", level="DEBUG", enable_file=False, enable_console=False)


@pytest.fixture(autouse=True)
def fresh_global_logger():
    """Start and finish every test without a global logger."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def add_tweets(db_session):
    """Insert denormalized tweets: add_tweets(("alice", "hi"), ("bob", "yo"))."""
    def _add(*rows):
        tweets = [Tweet(username=username, message=message) for username, message in rows]
        db_session.add_all(tweets)
        db_session.commit()
        return [t.id for t in tweets]
    return _add


@pytest.fixture
def add_user(db_session):
    """Insert a user: add_user("bob", bio="hi")."""
    def _add(username, bio=""):
        user = User(username=username, bio=bio)
        db_session.add(user)
        db_session.commit()
        return user
    return _add


@pytest.fixture
def tweets_json(tmp_path) -> Path:
    """Create a JSON export with sample tweets."""
    path = tmp_path / "tweets.json"
    data = {
        "tweets": [
            {"username": "alice", "message": "hi", "created_at": "2020-08-20T21:18:32"},
            {"username": "alice", "message": "yo"},
            {"username": "bob", "message": "hello world"},
            {"username": "carol"},
        ]
    }
    path.write_text(json.dumps(data, indent=2))
    return path
