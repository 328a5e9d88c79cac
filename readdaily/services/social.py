"""Likes and comments on articles.

Likes are unique per (article, user) and toggle. The cached
``Article.likes_count`` is always recomputed from the like rows after a
toggle so concurrent toggles cannot make it drift.
"""

import logging

from sqlalchemy.exc import IntegrityError

from readdaily.errors import NotFoundError, ValidationError
from readdaily.extensions import db
from readdaily.models.article import Article
from readdaily.models.interaction import Comment, Like
from readdaily.models.user_profile import UserProfile

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 2000


def _require_article(article_id):
    article = db.session.get(Article, article_id)
    if article is None:
        raise NotFoundError('Article not found')
    return article


def _require_user(user_id):
    user = db.session.get(UserProfile, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def _recount_likes(article):
    count = Like.query.filter_by(article_id=article.id).count()
    article.likes_count = count
    return count


def toggle_like(article_id, user_id) -> dict:
    """Like the article, or remove the like if one exists.

    Returns ``{'liked': bool, 'likes_count': int}``.
    """
    article = _require_article(article_id)
    _require_user(user_id)

    existing = Like.query.filter_by(article_id=article_id, user_id=user_id).first()
    if existing:
        db.session.delete(existing)
        db.session.flush()
        liked = False
    else:
        db.session.add(Like(article_id=article_id, user_id=user_id))
        try:
            db.session.flush()
        except IntegrityError:
            # Lost a race with a concurrent like from the same user
            db.session.rollback()
            logger.info('Duplicate like for %s by %s, keeping existing row', article_id, user_id)
            article = _require_article(article_id)
        liked = True

    count = _recount_likes(article)
    db.session.commit()
    return {'liked': liked, 'likes_count': count}


def add_comment(article_id, user_id, content) -> Comment:
    text = (content or '').strip()
    if not text:
        raise ValidationError('Comment content is required')
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(f'Comment must be at most {MAX_COMMENT_LENGTH} characters')

    _require_article(article_id)
    _require_user(user_id)

    comment = Comment(article_id=article_id, user_id=user_id, content=text)
    db.session.add(comment)
    db.session.commit()
    return comment


def list_comments(article_id):
    """Comments on an article, newest first."""
    return (
        Comment.query
        .filter_by(article_id=article_id)
        .order_by(Comment.commented_at.desc())
        .all()
    )


def list_likes(article_id):
    return (
        Like.query
        .filter_by(article_id=article_id)
        .order_by(Like.liked_at.desc())
        .all()
    )


def liked_articles(user_id):
    """Articles a user has liked, most recently liked first."""
    return (
        db.session.query(Article)
        .join(Like, Like.article_id == Article.id)
        .filter(Like.user_id == user_id)
        .order_by(Like.liked_at.desc())
        .all()
    )


def likes_display(names) -> str:
    """Short human summary, e.g. 'Ana, Ben and 3 others liked this'."""
    names = list(names)
    if not names:
        return ''
    if len(names) == 1:
        return f'{names[0]} liked this'
    if len(names) == 2:
        return f'{names[0]} and {names[1]} liked this'
    others = len(names) - 2
    noun = 'other' if others == 1 else 'others'
    return f'{names[0]}, {names[1]} and {others} {noun} liked this'
