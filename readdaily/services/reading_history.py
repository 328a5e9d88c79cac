"""Read log operations over a UserProfile.

``mark_read`` is the only way entries get added to ``read_articles``.
"""

from datetime import date, datetime, timezone

from .streak import update_streak


def utc_today() -> date:
    """Calendar day in UTC, the day boundary streaks are counted on."""
    return datetime.now(timezone.utc).date()


def read_article_ids(user) -> set:
    return {entry['article_id'] for entry in user.read_articles}


def is_read(user, article_id) -> bool:
    return article_id in read_article_ids(user)


def today_read_count(user, today: date) -> int:
    """Reads dated today. Drives the 3-a-day goal display, not a cap."""
    today_str = today.isoformat()
    return sum(1 for entry in user.read_articles if entry['read_date'] == today_str)


def mark_read(user, article_id, today: date):
    """Record a read of ``article_id`` and advance the streak.

    No-op when the article is already in the log.
    """
    if is_read(user, article_id):
        return user

    read_articles = user.read_articles
    read_articles.append({'article_id': article_id, 'read_date': today.isoformat()})
    user.read_articles = read_articles
    user.streak_data = update_streak(user.streak_data, read_articles, today)
    user.last_active = today
    return user
