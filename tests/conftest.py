import uuid
from datetime import date
from functools import wraps

import pytest
from flask import g, request

# Patch auth decorators BEFORE importing create_app, so blueprints
# are registered with the mocked versions.
import readdaily.middleware.auth as auth_module

TEST_USER_ID = '00000000-0000-4000-8000-000000000001'
OTHER_USER_ID = '00000000-0000-4000-8000-000000000002'
ADMIN_USER_ID = '00000000-0000-4000-8000-000000000003'

_original_require_auth = auth_module.require_auth
_original_optional_auth = auth_module.optional_auth


def _load_test_user():
    """Act as the user named by the X-Test-User header (default: test user)."""
    from readdaily.extensions import db
    from readdaily.models.user_profile import UserProfile
    user_id = request.headers.get('X-Test-User', TEST_USER_ID)
    profile = db.session.get(UserProfile, user_id)
    g.user_id = user_id
    g.user_profile = profile
    g.jwt_payload = {'sub': user_id, 'email': profile.email if profile else ''}


def _mock_require_auth(f):
    """Mock require_auth: skip JWT validation, act as a fixture user."""
    @wraps(f)
    def decorated(*args, **kwargs):
        _load_test_user()
        return f(*args, **kwargs)
    return decorated


def _mock_optional_auth(f):
    """Mock optional_auth: act as a fixture user."""
    @wraps(f)
    def decorated(*args, **kwargs):
        _load_test_user()
        return f(*args, **kwargs)
    return decorated


# Apply patches before any blueprint imports
auth_module.require_auth = _mock_require_auth
auth_module.optional_auth = _mock_optional_auth

from readdaily import create_app
from readdaily.extensions import db as _db
from readdaily.config import TestConfig
from readdaily.models.article import Article
from readdaily.models.category import Category
from readdaily.models.user_profile import UserProfile
from readdaily.services import url_metadata

CATEGORY_IDS = ['technology', 'business', 'health', 'productivity', 'education', 'general']


def _make_user(user_id, name, email, categories, role='user'):
    user = UserProfile(
        id=user_id,
        name=name,
        email=email,
        role=role,
        join_date=date(2025, 5, 1),
        last_active=date(2025, 5, 1),
    )
    user.categories = categories
    user.read_articles = []
    user.streak_data = {'current_streak': 0, 'longest_streak': 0, 'last_read_date': ''}
    return user


@pytest.fixture
def app():
    """Create a test Flask application with SQLite in-memory database."""
    application = create_app(TestConfig)

    with application.app_context():
        _db.create_all()

        for category_id in CATEGORY_IDS:
            _db.session.add(Category(id=category_id, name=category_id.title(), description=''))
        _db.session.add(_make_user(TEST_USER_ID, 'Test User', 'test@example.com', ['technology', 'health']))
        _db.session.add(_make_user(OTHER_USER_ID, 'Other Reader', 'other@example.com', ['business']))
        _db.session.add(_make_user(ADMIN_USER_ID, 'Admin', 'admin@example.com', ['general'], role='admin'))
        _db.session.commit()

        yield application

        _db.session.remove()
        _db.drop_all()
        url_metadata._metadata_cache.clear()


@pytest.fixture
def client(app):
    """Create a test client with mocked auth."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def make_article(app):
    """Factory that saves an Article with sensible defaults."""
    def _make(**overrides):
        fields = {
            'id': str(uuid.uuid4()),
            'title': 'An Article',
            'content': 'Body text',
            'summary': 'Summary',
            'source_url': 'https://example.com/a',
            'image_url': '',
            'category_id': 'technology',
            'estimated_reading_time': 5,
            'publish_date': date(2025, 6, 1),
            'featured': False,
        }
        fields.update(overrides)
        article = Article(**fields)
        _db.session.add(article)
        _db.session.commit()
        return article
    return _make
