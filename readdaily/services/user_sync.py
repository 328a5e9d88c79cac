"""Profile lifecycle: onboarding, sign-in merge, preferences, erasure.

A reader may build up history on a device before signing in. At sign-in
that device-local state is merged into the server record, so nothing read
offline is lost and no article ends up in the log twice.
"""

import logging
from datetime import date, datetime, timezone

from flask import current_app

from readdaily.errors import NotFoundError, ValidationError
from readdaily.extensions import db
from readdaily.models.analytics import ArticleRead, UserSession
from readdaily.models.article import Article
from readdaily.models.interaction import Comment, Like
from readdaily.models.user_profile import UserProfile
from . import analytics
from .reading_history import utc_today

logger = logging.getLogger(__name__)


def resolve_role(email: str) -> str:
    """Role granted to an e-mail address, from the ADMIN_EMAILS setting."""
    admins = current_app.config.get('ADMIN_EMAILS', [])
    return 'admin' if (email or '').lower() in admins else 'user'


def _validate_categories(categories):
    if not isinstance(categories, list) or not categories:
        raise ValidationError('Please select at least one category')
    if not all(isinstance(c, str) and c.strip() for c in categories):
        raise ValidationError('Categories must be non-empty strings')
    return [c.strip() for c in categories]


def create_user(name, email, categories, today: date = None) -> UserProfile:
    """Onboard a new reader."""
    name = (name or '').strip()
    email = (email or '').strip().lower()
    if not name:
        raise ValidationError('Name is required')
    if not email:
        raise ValidationError('Email is required')
    categories = _validate_categories(categories)

    if UserProfile.query.filter_by(email=email).first():
        raise ValidationError('A user with this email already exists')

    today = today or utc_today()
    user = UserProfile(
        name=name,
        email=email,
        role=resolve_role(email),
        join_date=today,
        last_active=today,
    )
    user.categories = categories
    user.read_articles = []
    user.streak_data = {'current_streak': 0, 'longest_streak': 0, 'last_read_date': ''}
    db.session.add(user)
    db.session.commit()
    return user


def find_or_create_user(email, name, local_data=None, today: date = None) -> UserProfile:
    """Sign-in entry point. Merges ``local_data`` when given.

    ``local_data`` mirrors the profile shape: ``name``, ``join_date``,
    ``preferences.categories``, ``read_articles`` and ``streak_data``.
    Raises ValidationError when it cannot be read; nothing is saved then.
    """
    email = (email or '').strip().lower()
    if not email:
        raise ValidationError('Email is required')
    today = today or utc_today()
    local = _parse_local_data(local_data) if local_data else None

    user = UserProfile.query.filter_by(email=email).first()
    if user is None:
        return _create_from_local(email, name, local, today)

    user.role = resolve_role(email)
    if local:
        _merge_local(user, local, today)
    else:
        user.last_active = today
        db.session.commit()
    return user


def _parse_day(value, field) -> date:
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f'{field} must be an ISO date (YYYY-MM-DD)') from None


def _parse_reads(reads):
    if not isinstance(reads, list):
        raise ValidationError('read_articles must be a list')
    parsed = []
    for entry in reads:
        if not isinstance(entry, dict) or not entry.get('article_id') or not entry.get('read_date'):
            raise ValidationError('Each read entry needs article_id and read_date')
        parsed.append({
            'article_id': str(entry['article_id']),
            'read_date': _parse_day(entry['read_date'], 'read_date').isoformat(),
        })
    return _dedupe_reads(parsed)


def _parse_streak(streak):
    """Missing fields fall back to an empty streak."""
    if not isinstance(streak, dict):
        raise ValidationError('streak_data must be an object')
    try:
        current = int(streak.get('current_streak') or 0)
        longest = int(streak.get('longest_streak') or 0)
    except (TypeError, ValueError):
        raise ValidationError('Streak counts must be whole numbers') from None
    if current < 0 or longest < 0:
        raise ValidationError('Streak counts cannot be negative')

    last_read_date = streak.get('last_read_date') or ''
    if last_read_date:
        last_read_date = _parse_day(last_read_date, 'last_read_date').isoformat()
    return {
        'current_streak': current,
        'longest_streak': max(longest, current),
        'last_read_date': last_read_date,
    }


def _parse_local_data(local_data) -> dict:
    """Validate device-local state and bring it into the server shape."""
    if not isinstance(local_data, dict):
        raise ValidationError('local_data must be an object')

    preferences = local_data.get('preferences') or {}
    if not isinstance(preferences, dict):
        raise ValidationError('preferences must be an object')
    categories = preferences.get('categories') or []
    if categories:
        categories = _validate_categories(categories)

    name = local_data.get('name')
    if name is not None and not isinstance(name, str):
        raise ValidationError('name must be a string')

    join_date = local_data.get('join_date')
    return {
        'name': (name or '').strip(),
        'join_date': _parse_day(join_date, 'join_date') if join_date else None,
        'categories': categories,
        'read_articles': _parse_reads(local_data.get('read_articles') or []),
        'streak_data': _parse_streak(local_data.get('streak_data') or {}),
    }


def _create_from_local(email, name, local, today):
    local = local or {}
    user = UserProfile(
        name=local.get('name') or (name or email.split('@')[0]).strip(),
        email=email,
        role=resolve_role(email),
        join_date=local.get('join_date') or today,
        last_active=today,
    )
    user.categories = local.get('categories') or list(current_app.config['DEFAULT_CATEGORIES'])
    user.read_articles = local.get('read_articles') or []
    user.streak_data = local.get('streak_data') or {
        'current_streak': 0, 'longest_streak': 0, 'last_read_date': '',
    }
    db.session.add(user)
    db.session.commit()

    _migrate_reads(user.id, user.read_articles)
    return user


def _dedupe_reads(read_articles):
    seen = set()
    result = []
    for entry in read_articles:
        if entry['article_id'] in seen:
            continue
        seen.add(entry['article_id'])
        result.append({'article_id': entry['article_id'], 'read_date': entry['read_date']})
    return result


def _merge_local(user, local, today):
    existing_reads = user.read_articles
    known = {entry['article_id'] for entry in existing_reads}
    new_reads = [entry for entry in local['read_articles'] if entry['article_id'] not in known]

    server_streak = user.streak_data
    local_streak = local['streak_data']
    user.streak_data = {
        'current_streak': max(server_streak['current_streak'], local_streak['current_streak']),
        'longest_streak': max(server_streak['longest_streak'], local_streak['longest_streak']),
        'last_read_date': max(server_streak['last_read_date'], local_streak['last_read_date']),
    }
    user.read_articles = existing_reads + new_reads
    user.categories = user.categories + local['categories']
    if local['name']:
        user.name = local['name']
    user.last_active = today
    db.session.commit()

    _migrate_reads(user.id, new_reads)
    return user


def _migrate_reads(user_id, reads):
    for entry in reads:
        analytics.record_article_read(
            user_id,
            entry['article_id'],
            device_info='migrated-from-local-storage',
            read_at=_day_start(date.fromisoformat(entry['read_date'])),
        )


def _day_start(day):
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def update_preferences(user, categories) -> UserProfile:
    user.categories = _validate_categories(categories)
    db.session.commit()
    return user


def complete_onboarding(user, name, categories) -> UserProfile:
    name = (name or '').strip()
    if not name:
        raise ValidationError('Name is required')
    user.name = name
    user.categories = _validate_categories(categories)
    db.session.commit()
    return user


def delete_user(user_id) -> None:
    """Erase an account and everything keyed to it."""
    user = db.session.get(UserProfile, user_id)
    if user is None:
        raise NotFoundError('User not found')

    analytics.end_user_sessions(user_id)

    liked_article_ids = [like.article_id for like in Like.query.filter_by(user_id=user_id)]
    Like.query.filter_by(user_id=user_id).delete()
    Comment.query.filter_by(user_id=user_id).delete()
    ArticleRead.query.filter_by(user_id=user_id).delete()
    UserSession.query.filter_by(user_id=user_id).delete()
    Article.query.filter_by(recommended_by=user_id).update({'recommended_by': None})
    db.session.flush()

    for article in Article.query.filter(Article.id.in_(liked_article_ids)):
        article.likes_count = Like.query.filter_by(article_id=article.id).count()

    db.session.delete(user)
    db.session.commit()
    logger.info('Deleted user %s', user_id)
