import logging
import os
import sys

from flask import Flask, jsonify
from .extensions import db, migrate
from .config import DevConfig, ProdConfig


def _configure_logging(app):
    """Set up structured logging for production."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    ))
    level = logging.INFO if not app.debug else logging.DEBUG
    app.logger.setLevel(level)
    # app.logger is the 'readdaily' logger; service module loggers propagate to it
    app.logger.addHandler(handler)
    logging.getLogger('gunicorn.error').setLevel(level)


def _ensure_schema(app):
    """Add new columns if they don't exist yet.

    This handles schema evolution for PostgreSQL deployments where
    Flask-Migrate isn't used. Each statement is idempotent (IF NOT EXISTS).
    """
    with app.app_context():
        if db.engine.dialect.name != 'postgresql':
            return
        try:
            db.session.execute(db.text(
                "ALTER TABLE user_profiles ADD COLUMN IF NOT EXISTS "
                "role VARCHAR(20) NOT NULL DEFAULT 'user'"
            ))
            db.session.execute(db.text(
                "ALTER TABLE articles ADD COLUMN IF NOT EXISTS "
                "likes_count INTEGER NOT NULL DEFAULT 0"
            ))
            db.session.execute(db.text(
                "ALTER TABLE articles ADD COLUMN IF NOT EXISTS "
                "processing_status VARCHAR(20)"
            ))
            db.session.execute(db.text(
                "CREATE INDEX IF NOT EXISTS ix_articles_youtube_video ON articles (youtube_video_id)"
            ))

            db.session.commit()
            app.logger.info('Schema migration check completed')
        except Exception as e:
            db.session.rollback()
            app.logger.warning('Schema migration check failed: %s', e)


def create_app(config=None):
    app = Flask(__name__, static_folder=None)

    if config is None:
        config = ProdConfig if os.environ.get('FLASK_ENV') == 'production' else DevConfig
    app.config.from_object(config)

    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so they are registered with SQLAlchemy (needed for migrations)
    from . import models  # noqa: F401

    # Ensure new schema elements exist in the database
    _ensure_schema(app)

    from flask_cors import CORS
    CORS(app)

    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from .api import register_blueprints
    register_blueprints(app)

    from .cli import bp as cli_bp
    app.register_blueprint(cli_bp)

    # Health check endpoint (used by Railway, Docker, and CI)
    @app.route('/healthz')
    def health_check():
        try:
            db.session.execute(db.text('SELECT 1'))
            return jsonify(status='healthy'), 200
        except Exception:
            app.logger.exception('Health check failed')
            return jsonify(status='unhealthy'), 503

    if app.config.get('CONTENT_AUTOMATION_ENABLED'):
        from .services.content_automation import start_scheduler
        start_scheduler(app)

    return app
