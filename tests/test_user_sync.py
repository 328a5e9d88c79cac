"""Tests for onboarding, sign-in merge and account deletion."""

from datetime import date, datetime, timezone

import pytest

from readdaily.errors import NotFoundError, ValidationError
from readdaily.extensions import db
from readdaily.models.analytics import ArticleRead, UserSession
from readdaily.models.interaction import Comment, Like
from readdaily.models.user_profile import UserProfile
from readdaily.services import analytics, social, user_sync
from tests.conftest import OTHER_USER_ID, TEST_USER_ID

TODAY = date(2025, 6, 10)


def _local_data(**overrides):
    data = {
        'name': 'Device Name',
        'join_date': '2025-05-20T08:00:00.000Z',
        'preferences': {'categories': ['health', 'education']},
        'read_articles': [
            {'article_id': 'a1', 'read_date': '2025-06-08'},
            {'article_id': 'a2', 'read_date': '2025-06-09'},
        ],
        'streak_data': {'current_streak': 2, 'longest_streak': 6, 'last_read_date': '2025-06-09'},
    }
    data.update(overrides)
    return data


class TestCreateUser:
    def test_creates_profile(self, app):
        user = user_sync.create_user('Ada', 'Ada@Example.com', ['technology'], today=TODAY)
        assert user.email == 'ada@example.com'
        assert user.role == 'user'
        assert user.categories == ['technology']
        assert user.read_articles == []
        assert user.streak_data['current_streak'] == 0
        assert user.join_date == TODAY

    def test_admin_role_from_config(self, app):
        user = UserProfile.query.filter_by(email='admin@example.com').first()
        db.session.delete(user)
        db.session.commit()
        created = user_sync.create_user('Boss', 'admin@example.com', ['general'], today=TODAY)
        assert created.role == 'admin'
        assert created.is_admin

    def test_name_required(self, app):
        with pytest.raises(ValidationError, match='Name is required'):
            user_sync.create_user('  ', 'x@example.com', ['technology'])

    def test_category_required(self, app):
        with pytest.raises(ValidationError, match='at least one category'):
            user_sync.create_user('X', 'x@example.com', [])

    def test_duplicate_email(self, app):
        with pytest.raises(ValidationError):
            user_sync.create_user('Again', 'test@example.com', ['technology'])


class TestFindOrCreateUser:
    def test_new_user_without_local_data_gets_defaults(self, app):
        user = user_sync.find_or_create_user('new@example.com', 'New Person', today=TODAY)
        assert user.name == 'New Person'
        assert user.categories == app.config['DEFAULT_CATEGORIES']
        assert user.read_articles == []

    def test_new_user_from_local_data(self, app):
        user = user_sync.find_or_create_user('new@example.com', 'Token Name', _local_data(), today=TODAY)
        assert user.name == 'Device Name'
        assert user.join_date == date(2025, 5, 20)
        assert [e['article_id'] for e in user.read_articles] == ['a1', 'a2']
        assert user.streak_data['longest_streak'] == 6
        assert ArticleRead.query.filter_by(user_id=user.id).count() == 2

    def test_merge_keeps_server_reads_and_adds_new_ones(self, app):
        existing = db.session.get(UserProfile, TEST_USER_ID)
        existing.read_articles = [{'article_id': 'a1', 'read_date': '2025-06-01'}]
        existing.streak_data = {'current_streak': 4, 'longest_streak': 4, 'last_read_date': '2025-06-01'}
        db.session.commit()

        user = user_sync.find_or_create_user('test@example.com', 'Test User', _local_data(), today=TODAY)

        reads = user.read_articles
        assert [e['article_id'] for e in reads] == ['a1', 'a2']
        # Server copy of a1 wins
        assert reads[0]['read_date'] == '2025-06-01'
        assert user.streak_data == {'current_streak': 4, 'longest_streak': 6, 'last_read_date': '2025-06-09'}
        assert user.categories == ['technology', 'health', 'education']
        assert user.name == 'Device Name'

    def test_merge_twice_adds_nothing(self, app):
        user_sync.find_or_create_user('test@example.com', 'Test User', _local_data(), today=TODAY)
        user = user_sync.find_or_create_user('test@example.com', 'Test User', _local_data(), today=TODAY)
        assert len(user.read_articles) == 2
        assert ArticleRead.query.filter_by(user_id=TEST_USER_ID).count() == 2

    def test_duplicate_local_reads_collapse(self, app):
        local = _local_data(read_articles=[
            {'article_id': 'a1', 'read_date': '2025-06-08'},
            {'article_id': 'a1', 'read_date': '2025-06-09'},
        ])
        user = user_sync.find_or_create_user('test@example.com', 'Test User', local, today=TODAY)
        assert user.read_articles == [{'article_id': 'a1', 'read_date': '2025-06-08'}]

    def test_sign_in_refreshes_last_active(self, app):
        user = user_sync.find_or_create_user('test@example.com', 'Test User', today=TODAY)
        assert user.last_active == TODAY

    @pytest.mark.parametrize('overrides', [
        {'read_articles': [{'articleId': 'a1', 'readDate': '2025-06-08'}]},
        {'join_date': '20/05/2025'},
        {'streak_data': {'current_streak': -1}},
    ])
    def test_unreadable_local_data_saves_nothing(self, app, overrides):
        with pytest.raises(ValidationError):
            user_sync.find_or_create_user('new@example.com', 'New', _local_data(**overrides), today=TODAY)
        assert UserProfile.query.filter_by(email='new@example.com').first() is None
        assert ArticleRead.query.count() == 0

    def test_partial_streak_is_completed(self, app):
        local = _local_data(streak_data={'current_streak': 3})
        user = user_sync.find_or_create_user('new@example.com', 'New', local, today=TODAY)
        assert user.streak_data == {'current_streak': 3, 'longest_streak': 3, 'last_read_date': ''}

    def test_profile_dates_default_to_utc_today(self, app):
        user = UserProfile(name='Dates', email='dates@example.com')
        db.session.add(user)
        db.session.commit()
        today = datetime.now(timezone.utc).date()
        assert user.join_date == today
        assert user.last_active == today


class TestPreferences:
    def test_update_preferences(self, app):
        user = db.session.get(UserProfile, TEST_USER_ID)
        user_sync.update_preferences(user, ['business', 'business', 'health'])
        assert user.categories == ['business', 'health']

    def test_update_preferences_rejects_empty(self, app):
        user = db.session.get(UserProfile, TEST_USER_ID)
        with pytest.raises(ValidationError):
            user_sync.update_preferences(user, [])
        assert user.categories == ['technology', 'health']

    def test_complete_onboarding(self, app):
        user = db.session.get(UserProfile, TEST_USER_ID)
        user_sync.complete_onboarding(user, ' Grace ', ['education'])
        assert user.name == 'Grace'
        assert user.categories == ['education']


class TestDeleteUser:
    def test_removes_everything_keyed_to_user(self, app, make_article):
        shared = make_article(recommended_by=TEST_USER_ID)
        liked = make_article()
        social.toggle_like(liked.id, TEST_USER_ID)
        social.toggle_like(liked.id, OTHER_USER_ID)
        social.add_comment(liked.id, TEST_USER_ID, 'Nice')
        analytics.start_session(TEST_USER_ID)
        analytics.record_article_read(TEST_USER_ID, liked.id)

        user_sync.delete_user(TEST_USER_ID)

        assert db.session.get(UserProfile, TEST_USER_ID) is None
        assert Like.query.filter_by(user_id=TEST_USER_ID).count() == 0
        assert Comment.query.filter_by(user_id=TEST_USER_ID).count() == 0
        assert ArticleRead.query.filter_by(user_id=TEST_USER_ID).count() == 0
        assert UserSession.query.filter_by(user_id=TEST_USER_ID).count() == 0
        assert shared.recommended_by is None
        assert liked.likes_count == 1

    def test_unknown_user(self, app):
        with pytest.raises(NotFoundError):
            user_sync.delete_user('nobody')
