"""Data seeding and clean-up jobs run from the command line."""

import json
import logging
import os
from datetime import date

from readdaily.extensions import db
from readdaily.models.analytics import ArticleRead
from readdaily.models.article import Article
from readdaily.models.category import Category
from readdaily.models.user_profile import UserProfile

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', 'categories.json')


def load_seed_file(path):
    """Read a seed file: either a list of categories or
    ``{"categories": [...], "articles": [...]}``."""
    with open(path, encoding='utf-8') as fh:
        data = json.load(fh)
    if isinstance(data, list):
        return {'categories': data, 'articles': []}
    return {'categories': data.get('categories', []), 'articles': data.get('articles', [])}


def seed(data) -> dict:
    """Insert categories and articles that don't exist yet."""
    added = {'categories': 0, 'articles': 0}

    for item in data.get('categories', []):
        if db.session.get(Category, item['id']) is None:
            db.session.add(Category(
                id=item['id'],
                name=item['name'],
                description=item.get('description', ''),
            ))
            added['categories'] += 1
    db.session.flush()

    for item in data.get('articles', []):
        if db.session.get(Article, item['id']) is not None:
            continue
        db.session.add(Article(
            id=item['id'],
            title=item['title'],
            content=item.get('content', ''),
            summary=item.get('summary', ''),
            source_url=item['source_url'],
            image_url=item.get('image_url', ''),
            category_id=item['category_id'],
            estimated_reading_time=max(1, int(item.get('estimated_reading_time', 5))),
            publish_date=date.fromisoformat(item['publish_date']),
            featured=bool(item.get('featured', False)),
        ))
        added['articles'] += 1

    db.session.commit()
    logger.info('Seeded %d categories and %d articles', added['categories'], added['articles'])
    return added


def prune_read_history() -> dict:
    """Remove read-log entries and analytics rows for deleted articles."""
    existing_ids = {row.id for row in db.session.query(Article.id)}
    cleaned_users = 0

    for user in UserProfile.query.all():
        reads = user.read_articles
        valid = [entry for entry in reads if entry['article_id'] in existing_ids]
        if len(valid) != len(reads):
            logger.info('User %s: cleaning %d invalid references', user.email, len(reads) - len(valid))
            user.read_articles = valid
            cleaned_users += 1

    orphaned_query = ArticleRead.query
    if existing_ids:
        orphaned_query = orphaned_query.filter(ArticleRead.article_id.notin_(existing_ids))
    orphaned = orphaned_query.delete(synchronize_session=False)

    db.session.commit()
    logger.info('Read history cleanup completed: %d users, %d orphaned reads', cleaned_users, orphaned)
    return {'users_cleaned': cleaned_users, 'orphaned_reads': orphaned}
