import json
import uuid
from datetime import datetime, timezone
from readdaily.extensions import db


def _utc_today():
    return datetime.now(timezone.utc).date()


def _empty_streak():
    return {'current_streak': 0, 'longest_streak': 0, 'last_read_date': ''}


class UserProfile(db.Model):
    """A reader and their reading state.

    ``preferences``, ``read_articles`` and ``streak_data`` are JSON text
    columns. Read and write them only through the ``categories``,
    ``read_articles`` and ``streak_data`` properties; the properties hand
    out fresh copies, so mutate by assigning a new value.
    """
    __tablename__ = 'user_profiles'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(320), nullable=False, unique=True)
    role = db.Column(db.String(20), nullable=False, default='user')
    join_date = db.Column(db.Date, nullable=False, default=_utc_today)
    last_active = db.Column(db.Date, nullable=False, default=_utc_today)
    preferences_json = db.Column('preferences', db.Text, nullable=False, default='{"categories": []}')
    read_articles_json = db.Column('read_articles', db.Text, nullable=False, default='[]')
    streak_data_json = db.Column('streak_data', db.Text, nullable=False, default=lambda: json.dumps(_empty_streak()))
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def categories(self):
        if not self.preferences_json:
            return []
        return list(json.loads(self.preferences_json).get('categories', []))

    @categories.setter
    def categories(self, value):
        unique = list(dict.fromkeys(value))
        self.preferences_json = json.dumps({'categories': unique})

    @property
    def read_articles(self):
        if not self.read_articles_json:
            return []
        return [dict(entry) for entry in json.loads(self.read_articles_json)]

    @read_articles.setter
    def read_articles(self, value):
        self.read_articles_json = json.dumps(
            [{'article_id': e['article_id'], 'read_date': e['read_date']} for e in value]
        )

    @property
    def streak_data(self):
        data = _empty_streak()
        if self.streak_data_json:
            data.update(json.loads(self.streak_data_json))
        return data

    @streak_data.setter
    def streak_data(self, value):
        self.streak_data_json = json.dumps({
            'current_streak': value['current_streak'],
            'longest_streak': value['longest_streak'],
            'last_read_date': value['last_read_date'],
        })
