"""Community sharing: a reader recommends a link to everyone else."""

import logging
from datetime import date, datetime, timezone

from readdaily.errors import UpstreamUnavailable, ValidationError
from readdaily.extensions import db
from readdaily.models.article import Article
from readdaily.models.category import Category
from . import url_metadata

logger = logging.getLogger(__name__)

MAX_COMMENTARY_LENGTH = 1000


def _ensure_category(category_id):
    if db.session.get(Category, category_id) is None:
        db.session.add(Category(id=category_id, name=category_id.title(), description=''))


def share_article(user, url, commentary, today: date) -> Article:
    """Create a shared Article for ``url`` recommended by ``user``.

    Raises ValidationError for bad or blocked URLs and UpstreamUnavailable
    when the page metadata cannot be fetched.
    """
    url = (url or '').strip()
    commentary = (commentary or '').strip()
    if not url:
        raise ValidationError('URL is required')
    if not url_metadata.is_valid_url(url):
        raise ValidationError('Please enter a valid http(s) URL')
    if url_metadata.is_blocked_domain(url_metadata.extract_domain(url)):
        raise ValidationError('Links from this site cannot be shared')
    if len(commentary) > MAX_COMMENTARY_LENGTH:
        raise ValidationError(f'Commentary must be at most {MAX_COMMENTARY_LENGTH} characters')

    metadata = url_metadata.extract_metadata(url)
    if metadata is None:
        raise UpstreamUnavailable(url, 'Could not read this link. Please check the URL and try again.')

    _ensure_category(metadata['category'])
    article = Article(
        title=metadata['title'],
        content=metadata['description'],
        summary=metadata['description'],
        source_url=url,
        image_url=metadata['image'],
        category_id=metadata['category'],
        estimated_reading_time=metadata['estimated_read_time'],
        publish_date=today,
        featured=False,
        recommended_by=user.id,
        recommended_at=datetime.now(timezone.utc),
        user_commentary=commentary or None,
        likes_count=0,
    )
    db.session.add(article)
    db.session.commit()
    logger.info('User %s shared %s as article %s', user.id, url, article.id)
    return article


def shared_by(user_id):
    return (
        Article.query
        .filter_by(recommended_by=user_id)
        .order_by(Article.recommended_at.desc())
        .all()
    )


def recommended_for(user_id, limit=50):
    """Articles shared by other readers, newest first."""
    return (
        Article.query
        .filter(Article.recommended_by.isnot(None), Article.recommended_by != user_id)
        .order_by(Article.recommended_at.desc())
        .limit(limit)
        .all()
    )
