import os
from dotenv import load_dotenv

load_dotenv()

def _fix_db_url(url):
    """Fix common DATABASE_URL issues for SQLAlchemy compatibility."""
    if not url:
        return 'sqlite:///readdaily.db'
    # Heroku/Railway use postgres:// but SQLAlchemy requires postgresql://
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def _split_list(value):
    return [item.strip().lower() for item in value.split(',') if item.strip()]


class Config:
    SQLALCHEMY_DATABASE_URI = _fix_db_url(os.environ.get('DATABASE_URL', ''))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID', '')
    ADMIN_EMAILS = _split_list(os.environ.get('ADMIN_EMAILS', ''))
    DEFAULT_CATEGORIES = ['technology', 'business', 'health']

    # LLM + YouTube
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o')
    YOUTUBE_API_KEY = os.environ.get('YOUTUBE_API_KEY', os.environ.get('GOOGLE_API_KEY', ''))

    # Link metadata settings
    METADATA_REQUEST_TIMEOUT = int(os.environ.get('METADATA_REQUEST_TIMEOUT', '10'))
    CONTENT_REQUEST_TIMEOUT = int(os.environ.get('CONTENT_REQUEST_TIMEOUT', '15'))
    METADATA_CACHE_TTL = int(os.environ.get('METADATA_CACHE_TTL', '300'))

    # Sessions
    SESSION_TIMEOUT_MINUTES = int(os.environ.get('SESSION_TIMEOUT_MINUTES', '30'))

    # Content automation
    CONTENT_AUTOMATION_ENABLED = os.environ.get('CONTENT_AUTOMATION_ENABLED', '') == '1'
    AUTOMATION_MAX_SUMMARIES = int(os.environ.get('AUTOMATION_MAX_SUMMARIES', '5'))
    ARTICLE_RETENTION_DAYS = int(os.environ.get('ARTICLE_RETENTION_DAYS', '30'))

class DevConfig(Config):
    DEBUG = True

class ProdConfig(Config):
    DEBUG = False

class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    ADMIN_EMAILS = ['admin@example.com']
    OPENAI_API_KEY = ''
    YOUTUBE_API_KEY = 'test-youtube-key'
    CONTENT_AUTOMATION_ENABLED = False
