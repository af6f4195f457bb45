"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for tweet and user storage.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, event, Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

Base = declarative_base()


class User(Base):
    """User model. `username` is the natural key."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String, nullable=False, unique=True)
    bio = Column(String, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    tweets = relationship("Tweet", back_populates="user", order_by="Tweet.id")

    def __repr__(self):
        return f"<User {self.id} {self.username!r}>"


class Tweet(Base):
    """Tweet model."""

    __tablename__ = "tweets"

    id = Column(Integer, primary_key=True)
    message = Column(String)
    username = Column(String)  # denormalized, superseded by user_id
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship("User", back_populates="tweets")

    def __repr__(self):
        return f"<Tweet {self.id} user_id={self.user_id}>"


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Path):
    """
    Create an engine for a SQLite database file.

    Foreign keys are enforced on every connection.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy engine
    """
    engine = create_engine(f"sqlite:///{db_path}")
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=get_engine(db_path))
    return Session()
