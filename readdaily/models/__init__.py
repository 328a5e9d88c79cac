from readdaily.models.user_profile import UserProfile
from readdaily.models.category import Category
from readdaily.models.article import Article
from readdaily.models.interaction import Like, Comment
from readdaily.models.analytics import UserSession, ArticleRead

__all__ = [
    'UserProfile', 'Category', 'Article', 'Like', 'Comment',
    'UserSession', 'ArticleRead',
]
