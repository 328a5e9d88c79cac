import uuid
from datetime import datetime, timezone
from readdaily.extensions import db


class Article(db.Model):
    __tablename__ = 'articles'

    id = db.Column(db.String(100), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = db.Column(db.String(500), nullable=False)
    content = db.Column(db.Text, nullable=False, default='')
    summary = db.Column(db.Text, nullable=False, default='')
    source_url = db.Column(db.String(2000), nullable=False)
    image_url = db.Column(db.String(2000), nullable=False, default='')
    category_id = db.Column(db.String(50), db.ForeignKey('categories.id'), nullable=False)
    estimated_reading_time = db.Column(db.Integer, nullable=False, default=5)
    publish_date = db.Column(db.Date, nullable=False)
    featured = db.Column(db.Boolean, nullable=False, default=False)

    # Community sharing
    recommended_by = db.Column(db.String(36), db.ForeignKey('user_profiles.id', ondelete='SET NULL'), nullable=True)
    recommended_at = db.Column(db.DateTime, nullable=True)
    user_commentary = db.Column(db.Text, nullable=True)
    likes_count = db.Column(db.Integer, nullable=False, default=0)

    # YouTube content automation
    youtube_video_id = db.Column(db.String(32), nullable=True)
    channel_name = db.Column(db.String(200), nullable=True)
    transcript = db.Column(db.Text, nullable=True)
    is_summarized = db.Column(db.Boolean, nullable=False, default=False)
    processing_status = db.Column(db.String(20), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    recommender = db.relationship('UserProfile', foreign_keys=[recommended_by])

    __table_args__ = (
        db.Index('ix_articles_publish_date', publish_date.desc()),
        db.Index('ix_articles_category', 'category_id'),
        db.Index('ix_articles_recommended_by', 'recommended_by'),
        db.Index('ix_articles_youtube_video', 'youtube_video_id'),
    )
