"""
Check that every tweet is linked to the user its username names.
"""

from typing import Any, Dict, List

from .database import Tweet, User


def verify_backfill(session) -> List[Dict[str, Any]]:
    """
    Compare tweets against users after a backfill.

    Returns a list of problems; an empty list means every tweet has a
    user_id pointing at an existing user whose username matches the
    tweet's own (where the tweet still carries one).
    """
    users = {user.id: user for user in session.query(User).all()}
    problems = []

    for tweet in session.query(Tweet).order_by(Tweet.id):
        if tweet.user_id is None:
            problems.append({"tweet_id": tweet.id, "problem": "unlinked", "username": tweet.username})
            continue

        user = users.get(tweet.user_id)
        if user is None:
            problems.append({"tweet_id": tweet.id, "problem": "missing user", "user_id": tweet.user_id})
            continue

        if tweet.username is not None and tweet.username != user.username:
            problems.append({
                "tweet_id": tweet.id,
                "problem": "username mismatch",
                "tweet": tweet.username,
                "user": user.username,
            })

    return problems
