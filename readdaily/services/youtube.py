"""YouTube Data API source for automated daily articles."""

import logging

import requests
from flask import current_app

from . import llm
from .word_count import count_words, reading_time_minutes

logger = logging.getLogger(__name__)

API_BASE = 'https://www.googleapis.com/youtube/v3'

# Education, Science & Tech, People & Blogs, Howto & Style
VIDEO_CATEGORIES = [27, 28, 22, 26]

WHITELISTED_CHANNELS = [
    'UCmFbghLe8MfJFxhWZZf9tNQ',  # Huberman Lab
    'UCSHZKyawb77ixDdsGog4iWA',  # Lex Fridman
    'UCzQUP1qoWDoEbmsQxvdjxgQ',  # PowerfulJRE
    'UCG-KntY7aVnIGXYEBQvmBAQ',  # Tim Ferriss
    'UCoOae5nYA7VqaXzerajD0lg',  # Ali Abdaal
    'UC9ZJ2Z_5kOL1J5X_3z6X0rw',  # Thomas Frank
    'UCJ24N4O0bP7LGLBDvye7oCA',  # Matt D'Avella
    'UCc5jnRIhRJNhPqc5vz8cGPQ',  # Veritasium
]

EXCLUDE_KEYWORDS = ['reaction', 'celebrity', 'gossip', 'meme', 'funny', 'viral']
INCLUDE_KEYWORDS = ['productivity', 'mental', 'ai', 'health', 'finance', 'business', 'science', 'learning']

WORDS_PER_MINUTE = 200


def _api_get(endpoint, **params):
    params['key'] = current_app.config['YOUTUBE_API_KEY']
    response = requests.get(
        f'{API_BASE}/{endpoint}',
        params=params,
        timeout=current_app.config.get('CONTENT_REQUEST_TIMEOUT', 15),
    )
    response.raise_for_status()
    return response.json()


def is_valid_video(item: dict) -> bool:
    """Keep learning-oriented videos, drop entertainment."""
    snippet = item.get('snippet') or {}
    title = (snippet.get('title') or '').lower()
    description = (snippet.get('description') or '').lower()

    if any(k in title or k in description for k in EXCLUDE_KEYWORDS):
        return False
    has_included = any(k in title or k in description for k in INCLUDE_KEYWORDS)
    return has_included or snippet.get('channelId') in WHITELISTED_CHANNELS


def map_video(item: dict) -> dict:
    snippet = item['snippet']
    video_id = item['id']['videoId'] if isinstance(item.get('id'), dict) else item.get('id')
    thumbnails = snippet.get('thumbnails') or {}
    thumbnail = (thumbnails.get('high') or thumbnails.get('default') or {}).get('url', '')
    return {
        'id': video_id,
        'title': snippet.get('title', ''),
        'channel_title': snippet.get('channelTitle', ''),
        'channel_id': snippet.get('channelId', ''),
        'thumbnail': thumbnail,
        'published_at': snippet.get('publishedAt', ''),
        'description': snippet.get('description', ''),
    }


def _collect(items):
    return [map_video(item) for item in items or [] if is_valid_video(item)]


def dedupe_videos(videos: list) -> list:
    seen = set()
    unique = []
    for video in videos:
        if video['id'] in seen:
            continue
        seen.add(video['id'])
        unique.append(video)
    return unique


def fetch_trending_videos() -> list:
    """Popular videos per category plus the latest from whitelisted channels.

    A failing category or channel is logged and skipped.
    """
    videos = []

    for category_id in VIDEO_CATEGORIES:
        try:
            data = _api_get(
                'videos', part='snippet', chart='mostPopular', regionCode='US',
                videoCategoryId=category_id, maxResults=5,
            )
            videos.extend(_collect(data.get('items')))
        except (requests.RequestException, ValueError) as e:
            logger.warning('Failed to fetch trending videos for category %s: %s', category_id, e)

    for channel_id in WHITELISTED_CHANNELS:
        try:
            data = _api_get(
                'search', part='snippet', channelId=channel_id, maxResults=2,
                order='date', type='video',
            )
            videos.extend(_collect(data.get('items')))
        except (requests.RequestException, ValueError) as e:
            logger.warning('Failed to fetch videos for channel %s: %s', channel_id, e)

    return dedupe_videos(videos)


def _watch_url(video_id):
    return f'https://www.youtube.com/watch?v={video_id}'


def extract_transcript(video_id: str) -> str | None:
    """Text to summarize for a video.

    Caption tracks can only be downloaded with OAuth, so when English
    captions exist a marker pointing at the video is returned. Otherwise
    an article body is built from the video description.
    """
    try:
        captions = _api_get('captions', part='snippet', videoId=video_id)
        for item in captions.get('items') or []:
            if item.get('snippet', {}).get('language') in ('en', 'en-US'):
                logger.info('Captions available for %s, OAuth needed to download', video_id)
                return (
                    '[Transcript available but requires OAuth authentication to download. '
                    f'Video: {_watch_url(video_id)}]'
                )
    except (requests.RequestException, ValueError) as e:
        logger.info('Caption lookup failed for %s: %s', video_id, e)

    try:
        data = _api_get('videos', part='snippet,statistics', id=video_id)
    except (requests.RequestException, ValueError) as e:
        logger.warning('Failed to extract transcript for %s: %s', video_id, e)
        return None

    items = data.get('items') or []
    if not items:
        return None

    snippet = items[0].get('snippet') or {}
    title = snippet.get('title', '')
    channel = snippet.get('channelTitle', '')
    description = snippet.get('description', '')

    parts = [f'# {title}', f'*Originally from {channel} on YouTube*']
    if len(description) > 100:
        parts.append(description)
    else:
        parts.append(
            f'This video from {channel} covers "{title}". The content discusses '
            'important insights and perspectives that are valuable for viewers '
            'interested in this topic.'
        )
        if description:
            parts.append(f'Video Description: {description}')
    parts.append(f'**Watch the full video:** {_watch_url(video_id)}')
    return '\n\n'.join(parts)


SUMMARY_SYSTEM_PROMPT = (
    'You are a helpful assistant that creates article summaries. '
    'Always respond with valid JSON only, no additional text.'
)


def _fallback_summary(title):
    return {
        'summary': (
            f'This article discusses insights from "{title}". The content covers '
            'important topics relevant to personal development and knowledge building.'
        ),
        'key_takeaways': [
            'Key insights from the video content',
            'Important takeaways for daily application',
            'Actionable advice for personal growth',
        ],
        'improved_title': title,
        'summarized': False,
    }


def summarize_content(transcript: str, title: str) -> dict:
    """Turn a transcript into a 300-500 word article.

    Returns summary, key_takeaways, improved_title and whether the LLM
    actually produced it (``summarized``).
    """
    prompt = f"""
Summarize the following video transcript into a 300-500 word article suitable for daily reading.
The summary should be engaging, informative, and capture the key insights.

Video Title: {title}

Transcript: {transcript}

Please provide:
1. A well-structured 300-500 word summary
2. 3 key takeaways as bullet points
3. A clear, descriptive article title (no clickbait)

Format your response as JSON:
{{
  "summary": "...",
  "keyTakeaways": ["...", "...", "..."],
  "improvedTitle": "..."
}}
"""
    try:
        parsed = llm.complete_json(prompt, system=SUMMARY_SYSTEM_PROMPT, temperature=0.3, max_tokens=1000)
    except llm.LLMUnavailable as e:
        logger.info('Skipping summarization of "%s": %s', title, e)
        return _fallback_summary(title)
    except Exception as e:
        logger.warning('Failed to summarize "%s": %s', title, e)
        return _fallback_summary(title)

    return {
        'summary': parsed.get('summary') or f'Article about "{title}"',
        'key_takeaways': parsed.get('keyTakeaways') or ['Key insights from the content'],
        'improved_title': parsed.get('improvedTitle') or title,
        'summarized': True,
    }


def estimate_reading_time(content: str) -> int:
    return reading_time_minutes(count_words(content), wpm=WORDS_PER_MINUTE)
