from flask import Blueprint, request, jsonify, g
from readdaily.api.serializers import article_to_dict
from readdaily.errors import NotFoundError
from readdaily.extensions import db
from readdaily.middleware.auth import require_auth, optional_auth
from readdaily.models.article import Article
from readdaily.services import sharing, social
from readdaily.services.reading_history import utc_today

bp = Blueprint('articles', __name__, url_prefix='/api/articles')


def _comment_to_dict(comment):
    return {
        'id': comment.id,
        'article_id': comment.article_id,
        'user_id': comment.user_id,
        'user_name': comment.user.name if comment.user else None,
        'content': comment.content,
        'commented_at': comment.commented_at.isoformat() if comment.commented_at else None,
    }


def _like_to_dict(like):
    return {
        'id': like.id,
        'user_id': like.user_id,
        'user_name': like.user.name if like.user else None,
        'liked_at': like.liked_at.isoformat() if like.liked_at else None,
    }


def _get_article_or_404(article_id):
    article = db.session.get(Article, article_id)
    if article is None:
        raise NotFoundError('Article not found')
    return article


@bp.route('', methods=['GET'])
@optional_auth
def list_articles():
    """Latest 50 articles, newest publish date first.

    Query params:
        category: <category id>
    """
    query = Article.query
    category = request.args.get('category')
    if category:
        query = query.filter_by(category_id=category)
    articles = (
        query
        .order_by(Article.publish_date.desc(), Article.created_at.desc())
        .limit(50)
        .all()
    )
    return jsonify({'articles': [article_to_dict(a) for a in articles]})


@bp.route('/my', methods=['GET'])
@require_auth
def my_shared_articles():
    """Articles the current user shared."""
    articles = sharing.shared_by(g.user_id)
    return jsonify({'articles': [article_to_dict(a) for a in articles]})


@bp.route('/recommended', methods=['GET'])
@require_auth
def recommended_articles():
    """Articles shared by other readers."""
    articles = sharing.recommended_for(g.user_id)
    return jsonify({'articles': [
        dict(article_to_dict(a), recommender_name=a.recommender.name if a.recommender else None)
        for a in articles
    ]})


@bp.route('/share', methods=['POST'])
@require_auth
def share_article():
    """Share a link with the community.

    Accepts: { url, commentary }
    Returns 422 if the link's metadata could not be fetched.
    """
    data = request.get_json()
    if not data:
        return jsonify({'error': 'Request body is required'}), 400

    article = sharing.share_article(
        g.user_profile,
        data.get('url'),
        data.get('commentary'),
        utc_today(),
    )
    return jsonify({'article': article_to_dict(article, include_content=True)}), 201


@bp.route('/<article_id>', methods=['GET'])
@optional_auth
def get_article(article_id):
    article = _get_article_or_404(article_id)
    return jsonify({'article': article_to_dict(article, include_content=True)})


@bp.route('/<article_id>/details', methods=['GET'])
@optional_auth
def get_article_details(article_id):
    """Article with its comments (newest first), likes and recommender."""
    article = _get_article_or_404(article_id)
    comments = social.list_comments(article_id)
    likes = social.list_likes(article_id)
    recommender = article.recommender

    liked_by_me = bool(g.user_id) and any(like.user_id == g.user_id for like in likes)
    return jsonify({
        'article': article_to_dict(article, include_content=True),
        'comments': [_comment_to_dict(c) for c in comments],
        'likes': [_like_to_dict(like) for like in likes],
        'likes_count': len(likes),
        'likes_display': social.likes_display(like.user.name for like in likes if like.user),
        'liked_by_me': liked_by_me,
        'recommender': {'id': recommender.id, 'name': recommender.name} if recommender else None,
    })


@bp.route('/<article_id>/like', methods=['POST'])
@require_auth
def toggle_like(article_id):
    """Like or unlike. Returns { liked, likes_count }."""
    result = social.toggle_like(article_id, g.user_id)
    return jsonify(result)


@bp.route('/<article_id>/comment', methods=['POST'])
@require_auth
def add_comment(article_id):
    """Accepts: { content }"""
    data = request.get_json()
    if not data:
        return jsonify({'error': 'Request body is required'}), 400

    comment = social.add_comment(article_id, g.user_id, data.get('content'))
    return jsonify({'comment': _comment_to_dict(comment)}), 201
