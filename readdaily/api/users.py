from flask import Blueprint, request, jsonify, g
from readdaily.api.serializers import article_to_dict, profile_to_dict
from readdaily.errors import NotFoundError
from readdaily.extensions import db
from readdaily.middleware.auth import require_auth
from readdaily.models.article import Article
from readdaily.models.user_profile import UserProfile
from readdaily.services import analytics, social, user_sync
from readdaily.services.daily_selector import select_daily
from readdaily.services.reading_history import (
    is_read, mark_read, today_read_count, utc_today,
)

bp = Blueprint('users', __name__, url_prefix='/api/users')


@bp.route('/me', methods=['GET'])
@require_auth
def get_me():
    return jsonify({'user': profile_to_dict(g.user_profile, utc_today())})


@bp.route('/me/onboarding', methods=['POST'])
@require_auth
def complete_onboarding():
    """Accepts: { name, categories: [...] }"""
    data = request.get_json()
    if not data:
        return jsonify({'error': 'Request body is required'}), 400

    profile = user_sync.complete_onboarding(g.user_profile, data.get('name'), data.get('categories'))
    return jsonify({'user': profile_to_dict(profile, utc_today())})


@bp.route('/me/preferences', methods=['PATCH'])
@require_auth
def update_preferences():
    """Accepts: { categories: [...] }"""
    data = request.get_json()
    if not data:
        return jsonify({'error': 'Request body is required'}), 400

    profile = user_sync.update_preferences(g.user_profile, data.get('categories'))
    return jsonify({'user': profile_to_dict(profile, utc_today())})


@bp.route('/me/daily', methods=['GET'])
@require_auth
def daily_articles():
    """Today's feed: up to three unread articles from subscribed categories."""
    today = utc_today()
    profile = g.user_profile
    pool = (
        Article.query
        .filter(Article.category_id.in_(profile.categories))
        .filter(Article.publish_date <= today)
        .order_by(Article.created_at.asc())
        .all()
    )
    articles = select_daily(profile, pool, today)
    return jsonify({
        'articles': [article_to_dict(a) for a in articles],
        'today_read_count': today_read_count(profile, today),
    })


@bp.route('/me/reads', methods=['POST'])
@require_auth
def mark_article_read():
    """Mark an article read and advance the streak.

    Accepts: { article_id }
    """
    data = request.get_json()
    if not data or not data.get('article_id'):
        return jsonify({'error': 'article_id is required'}), 400

    article_id = data['article_id']
    if db.session.get(Article, article_id) is None:
        raise NotFoundError('Article not found')

    profile = g.user_profile
    today = utc_today()
    newly_read = not is_read(profile, article_id)
    mark_read(profile, article_id, today)
    db.session.commit()

    if newly_read:
        analytics.record_article_read(
            profile.id, article_id, device_info=request.headers.get('User-Agent'),
        )

    return jsonify({'user': profile_to_dict(profile, today), 'newly_read': newly_read})


@bp.route('/me/analytics', methods=['GET'])
@require_auth
def my_analytics():
    return jsonify(analytics.get_user_analytics(g.user_id))


@bp.route('/me', methods=['DELETE'])
@require_auth
def delete_me():
    """Erase the account and everything keyed to it."""
    user_sync.delete_user(g.user_id)
    return jsonify({'ok': True})


def _get_user_or_404(user_id):
    user = db.session.get(UserProfile, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


@bp.route('/<user_id>/read-articles', methods=['GET'])
@require_auth
def user_read_articles(user_id):
    """Articles a user has read, most recent read first."""
    user = _get_user_or_404(user_id)
    reads = list(reversed(user.read_articles))
    ids = [entry['article_id'] for entry in reads]
    by_id = {a.id: a for a in Article.query.filter(Article.id.in_(ids))} if ids else {}
    articles = []
    for entry in reads:
        article = by_id.get(entry['article_id'])
        if article is None:
            continue
        item = article_to_dict(article)
        item['read_date'] = entry['read_date']
        articles.append(item)
    return jsonify({'user': {'id': user.id, 'name': user.name}, 'articles': articles})


@bp.route('/<user_id>/liked-articles', methods=['GET'])
@require_auth
def user_liked_articles(user_id):
    user = _get_user_or_404(user_id)
    articles = social.liked_articles(user.id)
    return jsonify({
        'user': {'id': user.id, 'name': user.name},
        'articles': [article_to_dict(a) for a in articles],
    })
