import uuid
from datetime import datetime, timezone
from readdaily.extensions import db


class Like(db.Model):
    __tablename__ = 'article_likes'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    article_id = db.Column(db.String(100), db.ForeignKey('articles.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False)
    liked_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    user = db.relationship('UserProfile')

    __table_args__ = (
        db.UniqueConstraint('article_id', 'user_id', name='uq_like_article_user'),
        db.Index('ix_article_likes_article', 'article_id'),
    )


class Comment(db.Model):
    __tablename__ = 'article_comments'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    article_id = db.Column(db.String(100), db.ForeignKey('articles.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user_profiles.id', ondelete='CASCADE'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    commented_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    user = db.relationship('UserProfile')

    __table_args__ = (
        db.Index('ix_article_comments_article', 'article_id', commented_at.desc()),
    )
