"""JSON shapes shared by several blueprints."""

from readdaily.services.reading_history import today_read_count


def profile_to_dict(user, today=None):
    data = {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'join_date': user.join_date.isoformat() if user.join_date else None,
        'last_active': user.last_active.isoformat() if user.last_active else None,
        'preferences': {'categories': user.categories},
        'read_articles': user.read_articles,
        'streak_data': user.streak_data,
    }
    if today is not None:
        data['today_read_count'] = today_read_count(user, today)
    return data


def article_to_dict(article, include_content=False):
    data = {
        'id': article.id,
        'title': article.title,
        'summary': article.summary,
        'source_url': article.source_url,
        'image_url': article.image_url,
        'category_id': article.category_id,
        'estimated_reading_time': article.estimated_reading_time,
        'publish_date': article.publish_date.isoformat() if article.publish_date else None,
        'featured': article.featured,
        'recommended_by': article.recommended_by,
        'recommended_at': article.recommended_at.isoformat() if article.recommended_at else None,
        'user_commentary': article.user_commentary,
        'likes_count': article.likes_count or 0,
    }
    if include_content:
        data['content'] = article.content
    return data
