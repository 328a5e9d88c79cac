import uuid
from datetime import datetime, timezone
from readdaily.extensions import db


class UserSession(db.Model):
    __tablename__ = 'user_sessions'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False)
    session_start = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    last_activity = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    session_end = db.Column(db.DateTime, nullable=True)
    device_info = db.Column(db.String(500), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    __table_args__ = (
        db.Index('ix_user_sessions_user_start', 'user_id', session_start.desc()),
    )


class ArticleRead(db.Model):
    __tablename__ = 'article_reads'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False)
    article_id = db.Column(db.String(100), nullable=False)
    read_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    session_id = db.Column(db.String(36), db.ForeignKey('user_sessions.id', ondelete='SET NULL'), nullable=True)
    device_info = db.Column(db.String(500), nullable=True)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'article_id', name='uq_article_read_user_article'),
    )
