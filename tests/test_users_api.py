import json

import pytest

from readdaily.extensions import db
from readdaily.models.analytics import ArticleRead, UserSession
from readdaily.models.user_profile import UserProfile
from readdaily.services import social
from readdaily.services.reading_history import utc_today
from tests.conftest import OTHER_USER_ID, TEST_USER_ID


def _post_json(client, url, payload, **kwargs):
    return client.post(url, data=json.dumps(payload), content_type='application/json', **kwargs)


class TestGetMe:
    """GET /api/users/me"""

    def test_returns_profile(self, client):
        resp = client.get('/api/users/me')
        assert resp.status_code == 200
        user = resp.get_json()['user']
        assert user['id'] == TEST_USER_ID
        assert user['email'] == 'test@example.com'
        assert user['preferences'] == {'categories': ['technology', 'health']}
        assert user['streak_data'] == {'current_streak': 0, 'longest_streak': 0, 'last_read_date': ''}
        assert user['today_read_count'] == 0


class TestOnboardingAndPreferences:
    """POST /api/users/me/onboarding, PATCH /api/users/me/preferences"""

    def test_onboarding(self, client):
        resp = _post_json(client, '/api/users/me/onboarding', {'name': 'Grace', 'categories': ['education']})
        assert resp.status_code == 200
        user = resp.get_json()['user']
        assert user['name'] == 'Grace'
        assert user['preferences']['categories'] == ['education']

    def test_onboarding_missing_name(self, client):
        resp = _post_json(client, '/api/users/me/onboarding', {'categories': ['education']})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Name is required'

    def test_onboarding_no_categories(self, client):
        resp = _post_json(client, '/api/users/me/onboarding', {'name': 'Grace', 'categories': []})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Please select at least one category'

    def test_update_preferences(self, client):
        resp = client.patch(
            '/api/users/me/preferences',
            data=json.dumps({'categories': ['business']}),
            content_type='application/json',
        )
        assert resp.status_code == 200
        assert resp.get_json()['user']['preferences']['categories'] == ['business']

    def test_update_preferences_requires_body(self, client):
        resp = client.patch('/api/users/me/preferences', data='{}', content_type='application/json')
        assert resp.status_code == 400


class TestMarkRead:
    """POST /api/users/me/reads"""

    def test_first_read_starts_streak(self, client, make_article):
        article = make_article()
        resp = _post_json(client, '/api/users/me/reads', {'article_id': article.id})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['newly_read'] is True
        today = utc_today().isoformat()
        assert data['user']['read_articles'] == [{'article_id': article.id, 'read_date': today}]
        assert data['user']['streak_data'] == {
            'current_streak': 1, 'longest_streak': 1, 'last_read_date': today,
        }
        assert data['user']['today_read_count'] == 1
        assert ArticleRead.query.filter_by(user_id=TEST_USER_ID).count() == 1

    def test_repeat_read_is_noop(self, client, make_article):
        article = make_article()
        _post_json(client, '/api/users/me/reads', {'article_id': article.id})
        resp = _post_json(client, '/api/users/me/reads', {'article_id': article.id})
        data = resp.get_json()
        assert data['newly_read'] is False
        assert len(data['user']['read_articles']) == 1
        assert data['user']['streak_data']['current_streak'] == 1
        assert ArticleRead.query.filter_by(user_id=TEST_USER_ID).count() == 1

    def test_missing_article_id(self, client):
        resp = _post_json(client, '/api/users/me/reads', {})
        assert resp.status_code == 400

    def test_unknown_article(self, client):
        resp = _post_json(client, '/api/users/me/reads', {'article_id': 'missing'})
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'Article not found'


class TestDailyArticles:
    """GET /api/users/me/daily"""

    def test_three_unread_from_my_categories(self, client, make_article):
        today = utc_today()
        featured = make_article(title='Featured', publish_date=today, featured=True)
        for i in range(3):
            make_article(title=f'Plain {i}', publish_date=today, category_id='health')
        make_article(title='Business', publish_date=today, featured=True, category_id='business')

        resp = client.get('/api/users/me/daily')
        assert resp.status_code == 200
        data = resp.get_json()
        titles = [a['title'] for a in data['articles']]
        assert len(titles) == 3
        assert titles[0] == featured.title
        assert 'Business' not in titles
        assert data['today_read_count'] == 0

    def test_read_articles_leave_the_feed(self, client, make_article):
        article = make_article(publish_date=utc_today())
        _post_json(client, '/api/users/me/reads', {'article_id': article.id})
        data = client.get('/api/users/me/daily').get_json()
        assert data['articles'] == []
        assert data['today_read_count'] == 1


class TestOtherUsers:
    """GET /api/users/<id>/read-articles, /liked-articles"""

    def test_read_articles_most_recent_first(self, client, make_article):
        first = make_article(title='First')
        second = make_article(title='Second')
        other = db.session.get(UserProfile, OTHER_USER_ID)
        other.read_articles = [
            {'article_id': first.id, 'read_date': '2025-06-01'},
            {'article_id': 'deleted-article', 'read_date': '2025-06-02'},
            {'article_id': second.id, 'read_date': '2025-06-03'},
        ]
        db.session.commit()

        resp = client.get(f'/api/users/{OTHER_USER_ID}/read-articles')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['user']['name'] == 'Other Reader'
        assert [(a['title'], a['read_date']) for a in data['articles']] == [
            ('Second', '2025-06-03'),
            ('First', '2025-06-01'),
        ]

    def test_liked_articles(self, client, make_article):
        article = make_article(title='Loved')
        social.toggle_like(article.id, OTHER_USER_ID)
        resp = client.get(f'/api/users/{OTHER_USER_ID}/liked-articles')
        assert [a['title'] for a in resp.get_json()['articles']] == ['Loved']

    def test_unknown_user(self, client):
        resp = client.get('/api/users/nobody/read-articles')
        assert resp.status_code == 404


class TestSession:
    """POST /api/auth/session, /api/auth/signout"""

    def test_sign_in_merges_local_data(self, client, make_article):
        article = make_article()
        local_data = {
            'read_articles': [{'article_id': article.id, 'read_date': '2025-06-01'}],
            'streak_data': {'current_streak': 2, 'longest_streak': 8, 'last_read_date': '2025-06-01'},
            'preferences': {'categories': ['education']},
        }
        resp = _post_json(client, '/api/auth/session', {'local_data': local_data})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['session_id']
        assert data['user']['streak_data']['longest_streak'] == 8
        assert data['user']['preferences']['categories'] == ['technology', 'health', 'education']
        assert [e['article_id'] for e in data['user']['read_articles']] == [article.id]

    def test_sign_in_without_body(self, client):
        resp = client.post('/api/auth/session')
        assert resp.status_code == 200
        assert UserSession.query.filter_by(user_id=TEST_USER_ID, session_end=None).count() == 1

    def test_bad_local_data(self, client):
        resp = _post_json(client, '/api/auth/session', {'local_data': ['nope']})
        assert resp.status_code == 400

    @pytest.mark.parametrize('local_data', [
        {'read_articles': [{'articleId': 'a1', 'readDate': '2025-06-01'}]},
        {'join_date': 'yesterday'},
        {'streak_data': {'current_streak': 'lots'}},
        {'read_articles': [{'article_id': 'a1', 'read_date': 'June 1st'}]},
    ])
    def test_unreadable_local_data_rejected(self, client, local_data):
        resp = _post_json(client, '/api/auth/session', {'local_data': local_data})
        assert resp.status_code == 400
        assert resp.get_json()['error']
        assert UserSession.query.count() == 0

    def test_partial_streak_filled_with_defaults(self, client):
        resp = _post_json(client, '/api/auth/session', {'local_data': {'streak_data': {'current_streak': 2}}})
        assert resp.status_code == 200
        assert resp.get_json()['user']['streak_data']['longest_streak'] == 2

    def test_sign_out_ends_session(self, client):
        client.post('/api/auth/session')
        resp = client.post('/api/auth/signout')
        assert resp.status_code == 200
        assert UserSession.query.filter_by(user_id=TEST_USER_ID, session_end=None).count() == 0

    def test_public_config(self, client):
        resp = client.get('/api/config')
        assert resp.status_code == 200
        assert 'google_client_id' in resp.get_json()


class TestAnalyticsAndDeletion:
    """GET /api/users/me/analytics, DELETE /api/users/me"""

    def test_my_analytics(self, client, make_article):
        article = make_article()
        client.post('/api/auth/session')
        _post_json(client, '/api/users/me/reads', {'article_id': article.id})
        data = client.get('/api/users/me/analytics').get_json()
        assert data['sessions']['total'] == 1
        assert data['articles']['total_reads'] == 1

    def test_delete_me(self, client):
        resp = client.delete('/api/users/me')
        assert resp.status_code == 200
        assert db.session.get(UserProfile, TEST_USER_ID) is None
