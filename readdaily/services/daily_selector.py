"""Daily feed selection.

Up to three unread articles from the reader's categories, filled in tiers:
today's featured articles, then today's other articles, then the backlog
newest first. Each tier keeps the order it was given in.
"""

from datetime import date

from .reading_history import read_article_ids

DAILY_ARTICLE_LIMIT = 3


def select_daily(user, articles, today: date, limit: int = DAILY_ARTICLE_LIMIT) -> list:
    categories = set(user.categories)
    already_read = read_article_ids(user)

    eligible = [
        a for a in articles
        if a.category_id in categories and a.id not in already_read
    ]

    selected = [a for a in eligible if a.publish_date == today and a.featured][:limit]

    if len(selected) < limit:
        non_featured = [a for a in eligible if a.publish_date == today and not a.featured]
        selected.extend(non_featured[:limit - len(selected)])

    if len(selected) < limit:
        backlog = sorted(
            (a for a in eligible if a.publish_date < today),
            key=lambda a: a.publish_date,
            reverse=True,
        )
        selected.extend(backlog[:limit - len(selected)])

    return selected
