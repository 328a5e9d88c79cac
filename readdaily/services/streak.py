"""Read-streak bookkeeping.

A streak counts consecutive calendar days with at least one read. The
state is a plain mapping::

    {'current_streak': int, 'longest_streak': int, 'last_read_date': 'YYYY-MM-DD' or ''}

``update_streak`` is the only place the rules live; ``mark_read`` calls it
after every new read.
"""

from datetime import date, timedelta


def _read_on(read_articles, day: date) -> bool:
    day_str = day.isoformat()
    return any(entry['read_date'] == day_str for entry in read_articles)


def update_streak(streak_data: dict, read_articles: list, today: date) -> dict:
    """Return the streak state after today's reads.

    Safe to call repeatedly: nothing changes until there is a read dated
    ``today``, and nothing changes again once ``last_read_date`` is today.
    The input mapping is not modified.
    """
    result = dict(streak_data)
    today_str = today.isoformat()
    last_read_date = result.get('last_read_date') or ''

    if not _read_on(read_articles, today):
        return result
    if last_read_date == today_str:
        return result

    current = result.get('current_streak', 0)
    yesterday = (today - timedelta(days=1)).isoformat()

    if last_read_date == yesterday or len(read_articles) == 1:
        current += 1
    elif not last_read_date:
        # History without a recorded streak (e.g. merged from another device)
        current = 1
    else:
        days_diff = (today - date.fromisoformat(last_read_date)).days
        if days_diff > 1:
            current = 1
        # days_diff <= 1 keeps current_streak as is

    result['current_streak'] = current
    result['longest_streak'] = max(result.get('longest_streak', 0), current)
    result['last_read_date'] = today_str
    return result
