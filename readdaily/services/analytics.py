"""Session and read analytics.

Peripheral bookkeeping: the reading core only tells this module when a
session starts (sign-in) and when an article is newly read.
"""

import logging
from datetime import datetime, timedelta, timezone

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from readdaily.extensions import db
from readdaily.models.analytics import ArticleRead, UserSession
from readdaily.models.user_profile import UserProfile

logger = logging.getLogger(__name__)

STALE_SESSION_AGE = timedelta(days=7)


def _now():
    return datetime.now(timezone.utc)


def _as_utc(value):
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _session_timeout():
    return timedelta(minutes=current_app.config.get('SESSION_TIMEOUT_MINUTES', 30))


def _open_session(user_id):
    return (
        UserSession.query
        .filter(UserSession.user_id == user_id, UserSession.session_end.is_(None))
        .order_by(UserSession.session_start.desc())
        .first()
    )


def end_user_sessions(user_id, now=None):
    """Close every open session for the user."""
    now = now or _now()
    UserSession.query.filter(
        UserSession.user_id == user_id,
        UserSession.session_end.is_(None),
    ).update({'session_end': now}, synchronize_session=False)
    db.session.commit()


def start_session(user_id, device_info=None, ip_address=None, now=None):
    now = now or _now()
    end_user_sessions(user_id, now=now)

    session = UserSession(
        user_id=user_id,
        session_start=now,
        last_activity=now,
        device_info=device_info,
        ip_address=ip_address,
    )
    db.session.add(session)
    db.session.commit()
    logger.info('Session %s started for %s', session.id, user_id)
    return session


def touch_session(user_id, now=None):
    """Bump activity on the open session; close it if it has idled out.

    Returns the open session, or None when there is none (or it timed out).
    """
    now = now or _now()
    session = _open_session(user_id)
    if session is None:
        return None

    if now - _as_utc(session.last_activity) > _session_timeout():
        session.session_end = now
        db.session.commit()
        logger.info('Session %s for %s timed out', session.id, user_id)
        return None

    session.last_activity = now
    db.session.commit()
    return session


def record_article_read(user_id, article_id, device_info=None, read_at=None):
    """Log a read for analytics. A repeat read of the same article is ignored."""
    existing = ArticleRead.query.filter_by(user_id=user_id, article_id=article_id).first()
    if existing:
        logger.info('Article already read: %s already read %s', user_id, article_id)
        return None

    session = touch_session(user_id)
    read = ArticleRead(
        user_id=user_id,
        article_id=article_id,
        read_at=read_at or _now(),
        session_id=session.id if session else None,
        device_info=device_info,
    )
    db.session.add(read)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info('Article already read: %s already read %s', user_id, article_id)
        return None

    logger.info('Article read recorded: %s read %s', user_id, article_id)
    return read


def _session_minutes(sessions):
    total = timedelta()
    for s in sessions:
        if s.session_end is not None:
            total += _as_utc(s.session_end) - _as_utc(s.session_start)
    return round(total.total_seconds() / 60)


def get_user_analytics(user_id):
    sessions = UserSession.query.filter_by(user_id=user_id).all()
    total_reads, unique_articles = (
        db.session.query(
            func.count(ArticleRead.id),
            func.count(func.distinct(ArticleRead.article_id)),
        )
        .filter(ArticleRead.user_id == user_id)
        .one()
    )
    recent = (
        UserSession.query
        .filter_by(user_id=user_id)
        .order_by(UserSession.session_start.desc())
        .limit(10)
        .all()
    )
    return {
        'sessions': {
            'total': len(sessions),
            'total_time_minutes': _session_minutes(sessions),
            'recent': [_session_to_dict(s) for s in recent],
        },
        'articles': {
            'total_reads': total_reads or 0,
            'unique_articles': unique_articles or 0,
        },
    }


def get_all_users_analytics():
    session_counts = (
        db.session.query(UserSession.user_id, func.count(UserSession.id).label('total_sessions'))
        .group_by(UserSession.user_id)
        .subquery()
    )
    read_counts = (
        db.session.query(
            ArticleRead.user_id,
            func.count(ArticleRead.id).label('total_reads'),
            func.count(func.distinct(ArticleRead.article_id)).label('unique_articles'),
        )
        .group_by(ArticleRead.user_id)
        .subquery()
    )
    rows = (
        db.session.query(
            UserProfile,
            session_counts.c.total_sessions,
            read_counts.c.total_reads,
            read_counts.c.unique_articles,
        )
        .outerjoin(session_counts, UserProfile.id == session_counts.c.user_id)
        .outerjoin(read_counts, UserProfile.id == read_counts.c.user_id)
        .order_by(UserProfile.last_active.desc())
        .all()
    )
    return [
        {
            'user_id': user.id,
            'user_name': user.name,
            'email': user.email,
            'join_date': user.join_date.isoformat() if user.join_date else None,
            'last_active': user.last_active.isoformat() if user.last_active else None,
            'total_sessions': sessions or 0,
            'total_reads': reads or 0,
            'unique_articles': unique or 0,
        }
        for user, sessions, reads, unique in rows
    ]


def cleanup_stale_sessions(now=None):
    """Close sessions left open for over a week, crediting them 30 minutes."""
    now = now or _now()
    cutoff = now - STALE_SESSION_AGE
    stale = UserSession.query.filter(
        UserSession.session_end.is_(None),
        UserSession.session_start < cutoff,
    ).all()
    for s in stale:
        s.session_end = _as_utc(s.session_start) + timedelta(minutes=30)
    db.session.commit()
    if stale:
        logger.info('Closed %d stale sessions', len(stale))
    return len(stale)


def _session_to_dict(session):
    return {
        'id': session.id,
        'session_start': session.session_start.isoformat() if session.session_start else None,
        'last_activity': session.last_activity.isoformat() if session.last_activity else None,
        'session_end': session.session_end.isoformat() if session.session_end else None,
        'device_info': session.device_info,
    }
