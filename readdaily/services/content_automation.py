"""Daily import of YouTube videos as summarized articles.

Runs once a day from the scheduler (or on demand via the admin endpoint
and the ``flask readdaily run-automation`` command).
"""

import logging
from datetime import date, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from flask import current_app

from readdaily.extensions import db
from readdaily.models.article import Article
from readdaily.models.category import Category
from readdaily.models.interaction import Comment, Like
from . import analytics, youtube
from .reading_history import utc_today

logger = logging.getLogger(__name__)

# Checked in order; first match wins
CATEGORY_RULES = [
    ('technology', ['lex fridman'], ['ai', 'technology', 'tech', 'apple', 'google', 'software', 'update']),
    ('productivity', ['ali abdaal', 'thomas frank', 'tim ferriss'],
     ['productivity', 'business', 'entrepreneur', 'work', 'guide', 'tips', 'study']),
    ('health', ['huberman', 'veritasium'],
     ['science', 'health', 'fitness', 'workout', 'exercise', 'nutrition']),
    ('education', ['education'], ['learn', 'education', 'tutorial', 'course']),
]


def assign_category(channel_name: str, title: str) -> str | None:
    """Category for a video, or None when it fits none of ours."""
    channel = channel_name.lower()
    words = title.lower()
    for category_id, channels, keywords in CATEGORY_RULES:
        if any(c in channel for c in channels) or any(k in words for k in keywords):
            return category_id
    return None


def filter_existing_videos(videos: list) -> list:
    """Drop videos already imported as articles."""
    ids = [v['id'] for v in videos]
    if not ids:
        return []
    existing = {
        row.youtube_video_id
        for row in db.session.query(Article.youtube_video_id)
        .filter(Article.youtube_video_id.in_(ids))
    }
    return [v for v in videos if v['id'] not in existing]


def _ensure_category(category_id):
    if db.session.get(Category, category_id) is None:
        db.session.add(Category(id=category_id, name=category_id.title(), description=''))


def build_article(video: dict, transcript: str, today: date, summarize: bool) -> Article | None:
    category_id = assign_category(video['channel_title'], video['title'])
    if category_id is None:
        logger.info('Skipping video "%s" - no suitable category', video['title'])
        return None

    if summarize:
        summarized = youtube.summarize_content(transcript, video['title'])
        content = summarized['summary']
        summary = ' • '.join(summarized['key_takeaways'])
        title = summarized['improved_title']
        is_summarized = summarized['summarized']
    else:
        content = transcript
        summary = video['description'][:300]
        title = video['title']
        is_summarized = False

    return Article(
        id=f"yt-{video['id']}",
        title=title,
        content=content,
        summary=summary,
        source_url=f"https://www.youtube.com/watch?v={video['id']}",
        image_url=video['thumbnail'],
        estimated_reading_time=youtube.estimate_reading_time(content),
        category_id=category_id,
        publish_date=today,
        featured=False,
        youtube_video_id=video['id'],
        channel_name=video['channel_title'],
        transcript=transcript,
        is_summarized=is_summarized,
        processing_status='completed',
    )


def cleanup_old_articles(today: date) -> int:
    """Delete imported articles past the retention window."""
    cutoff = today - timedelta(days=current_app.config.get('ARTICLE_RETENTION_DAYS', 30))
    stale_ids = [
        row.id for row in db.session.query(Article.id)
        .filter(Article.youtube_video_id.isnot(None), Article.publish_date < cutoff)
    ]
    if not stale_ids:
        return 0

    # SQLite does not enforce ON DELETE CASCADE
    Like.query.filter(Like.article_id.in_(stale_ids)).delete(synchronize_session=False)
    Comment.query.filter(Comment.article_id.in_(stale_ids)).delete(synchronize_session=False)
    deleted = Article.query.filter(Article.id.in_(stale_ids)).delete(synchronize_session=False)
    db.session.commit()
    logger.info('Cleaned up old articles: %d removed', deleted)
    return deleted


def process_daily_content(today: date) -> list:
    """One full automation pass. Returns the articles saved."""
    max_summaries = current_app.config.get('AUTOMATION_MAX_SUMMARIES', 5)

    videos = youtube.fetch_trending_videos()
    logger.info('Found %d potential videos to process', len(videos))
    videos = filter_existing_videos(videos)
    logger.info('%d new videos after duplicate filtering', len(videos))

    saved = []
    summaries = 0
    for video in videos:
        try:
            transcript = youtube.extract_transcript(video['id'])
            if not transcript:
                logger.info('No content available for "%s", skipping', video['title'])
                continue

            article = build_article(video, transcript, today, summarize=summaries < max_summaries)
            if article is None:
                continue
            if article.is_summarized:
                summaries += 1

            _ensure_category(article.category_id)
            db.session.add(article)
            db.session.commit()
            saved.append(article)
            logger.info('Saved article: %s', article.title)
        except Exception:
            db.session.rollback()
            logger.exception('Failed to process video %s', video.get('id'))

    logger.info('Daily content automation completed. Processed %d articles.', len(saved))
    cleanup_old_articles(today)
    return saved


def start_scheduler(app):
    """Daily import at 22:30 UTC (04:00 IST) plus hourly session cleanup."""
    def daily_job():
        with app.app_context():
            try:
                process_daily_content(utc_today())
            except Exception:
                app.logger.exception('Daily content automation failed')

    def cleanup_job():
        with app.app_context():
            try:
                analytics.cleanup_stale_sessions()
            except Exception:
                app.logger.exception('Stale session cleanup failed')

    scheduler = BackgroundScheduler(timezone='UTC')
    scheduler.add_job(daily_job, 'cron', hour=22, minute=30, id='daily_content', replace_existing=True)
    scheduler.add_job(cleanup_job, 'interval', hours=1, id='session_cleanup', replace_existing=True)
    scheduler.start()
    app.logger.info('Content automation scheduler started - daily at 22:30 UTC')
    return scheduler
