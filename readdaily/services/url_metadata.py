"""Link preview metadata for shared URLs.

Fast paths: Twitter/X and YouTube expose oEmbed endpoints, which are
quicker and more reliable than scraping their JS-heavy pages.

Everything else is fetched with requests and read with BeautifulSoup:
title and description from Open Graph / Twitter Card / plain meta tags,
and a headline image found by walking a fallback ladder (meta tags,
JSON-LD, hero images, first content-looking image).

The result is then classified by the LLM into a reading category with an
estimated reading time. Any failure is logged and returns None.
"""

import html
import json
import logging
import re
import time
from urllib.parse import urlparse, urlencode, parse_qsl, urlunparse

import requests
from bs4 import BeautifulSoup
from flask import current_app

from . import llm

logger = logging.getLogger(__name__)

_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) '
        'AppleWebKit/537.36 (KHTML, like Gecko) '
        'Chrome/120.0.0.0 Safari/537.36'
    ),
    'Accept': (
        'text/html,application/xhtml+xml,application/xml;'
        'q=0.9,image/webp,*/*;q=0.8'
    ),
    'Accept-Language': 'en-US,en;q=0.9',
}

BLOCKED_DOMAINS = [
    'pornhub.com', 'xvideos.com', 'redtube.com', 'youporn.com',
    'tube8.com', 'spankbang.com', 'xnxx.com', 'beeg.com',
    'tnaflix.com', 'xhamster.com', 'porn.com', 'sex.com',
    'adult.com', 'xxx.com', 'gambling.com', 'casino.com',
    'bet365.com', 'pokerstars.com', 'darkweb.com', 'onion.com',
]

CATEGORIES = ('technology', 'business', 'health', 'productivity', 'general', 'education')

_CATEGORY_ALIASES = {
    'tech': 'technology',
    'science': 'technology',
}

DEFAULT_CATEGORY = 'business'
DEFAULT_READ_TIME = 5

# ---------------------------------------------------------------------------
# Metadata cache
# ---------------------------------------------------------------------------

_metadata_cache = {}

def _get_cached(url):
    if url in _metadata_cache:
        ts, data = _metadata_cache[url]
        if time.time() - ts < current_app.config.get('METADATA_CACHE_TTL', 300):
            return data
    return None

def _set_cached(url, data):
    _metadata_cache[url] = (time.time(), data)
    if len(_metadata_cache) > 200:
        oldest = min(_metadata_cache, key=lambda k: _metadata_cache[k][0])
        del _metadata_cache[oldest]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def extract_domain(url: str) -> str:
    """Extract domain from URL (e.g., 'nytimes.com')."""
    try:
        hostname = urlparse(url).hostname or ''
        return hostname.lower().removeprefix('www.')
    except ValueError:
        return ''


def is_blocked_domain(domain: str) -> bool:
    domain = domain.lower()
    return any(domain == blocked or domain.endswith('.' + blocked) for blocked in BLOCKED_DOMAINS)


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.hostname)


def clean_text(text: str) -> str:
    """Decode entities and collapse whitespace."""
    return re.sub(r'\s+', ' ', html.unescape(text)).strip()


def _meta_content(soup, *selectors):
    """First non-empty content among <meta property=...> / <meta name=...> tags."""
    for attr, value in selectors:
        tag = soup.find('meta', attrs={attr: value})
        if tag and tag.get('content', '').strip():
            return tag['content'].strip()
    return None


# ---------------------------------------------------------------------------
# Image discovery
# ---------------------------------------------------------------------------

_IMAGE_URL_PATTERNS = [
    re.compile(r'\.(jpg|jpeg|png|gif|webp|svg)($|\?)', re.IGNORECASE),
    re.compile(r'imgur\.com', re.IGNORECASE),
    re.compile(r'cloudinary\.com', re.IGNORECASE),
    re.compile(r'amazonaws\.com', re.IGNORECASE),
    re.compile(r'googleusercontent\.com', re.IGNORECASE),
    re.compile(r'wp\.com', re.IGNORECASE),
    re.compile(r'wordpress\.com', re.IGNORECASE),
    re.compile(r'medium\.com', re.IGNORECASE),
    re.compile(r'substack\.com', re.IGNORECASE),
    re.compile(r'ytimg\.com', re.IGNORECASE),
    re.compile(r'twimg\.com', re.IGNORECASE),
]

_SKIP_IMAGE_RE = re.compile(
    r'icon|logo|avatar|profile|ads?[-_]|tracking|pixel|beacon|social|share|'
    r'button|arrow|loading|spinner|placeholder|1x1|\.gif$',
    re.IGNORECASE,
)

_HERO_CLASS_RE = re.compile(r'hero|featured|article|headline|main|banner', re.IGNORECASE)

_KEEP_IMAGE_PARAMS = {'w', 'h', 'width', 'height', 'quality', 'format', 'crop', 'fit'}


def is_valid_image_url(url: str) -> bool:
    if not url:
        return False
    candidate = url if url.startswith('http') else f'https:{url}'
    try:
        if not urlparse(candidate).hostname:
            return False
    except ValueError:
        return False
    return any(p.search(url) for p in _IMAGE_URL_PATTERNS)


def normalize_image_url(url: str) -> str:
    if not url:
        return ''
    if url.startswith('//'):
        return f'https:{url}'
    # Relative paths would need the page URL; keep them rooted
    if not url.startswith('http'):
        return url if url.startswith('/') else f'/{url}'

    parsed = urlparse(url)
    kept = [(k, v) for k, v in parse_qsl(parsed.query) if k.lower() in _KEEP_IMAGE_PARAMS]
    return urlunparse(parsed._replace(query=urlencode(kept)))


def _structured_data_image(soup):
    for script in soup.find_all('script', attrs={'type': 'application/ld+json'}):
        try:
            data = json.loads(script.string or '')
        except ValueError:
            continue
        if isinstance(data, list):
            data = data[0] if data else {}
        image = data.get('image') if isinstance(data, dict) else None
        if isinstance(image, list):
            image = image[0] if image else None
        if isinstance(image, dict):
            image = image.get('url')
        if image:
            return image
    return None


def _hero_image(soup):
    for img in soup.find_all('img', src=True):
        if _HERO_CLASS_RE.search(' '.join(img.get('class', []))):
            return img['src']
    for container in soup.find_all(['figure', 'div'], class_=_HERO_CLASS_RE):
        img = container.find('img', src=True)
        if img:
            return img['src']
    return None


def _is_content_image(img) -> bool:
    src = img.get('src', '')
    if _SKIP_IMAGE_RE.search(src) or _SKIP_IMAGE_RE.search(' '.join(img.get('class', []))) \
            or _SKIP_IMAGE_RE.search(img.get('alt', '')):
        return False
    try:
        width = int(img.get('width', ''))
        height = int(img.get('height', ''))
    except ValueError:
        return True
    return width >= 200 and height >= 100


def _content_image(soup):
    for img in soup.find_all('img', src=True):
        if _is_content_image(img):
            return img['src']
    return None


def extract_headline_image(soup) -> str:
    strategies = [
        lambda: _meta_content(
            soup,
            ('property', 'og:image'),
            ('name', 'twitter:image'),
            ('name', 'twitter:image:src'),
        ),
        lambda: _meta_content(
            soup,
            ('name', 'article:image'),
            ('property', 'article:image'),
            ('name', 'image'),
        ),
        lambda: _structured_data_image(soup),
        lambda: _hero_image(soup),
        lambda: _content_image(soup),
    ]
    for strategy in strategies:
        image = strategy()
        if image and is_valid_image_url(image):
            return normalize_image_url(image)
    # No usable image; the client shows its own placeholder
    return ''


def parse_html_metadata(html: str) -> dict:
    soup = BeautifulSoup(html, 'html.parser')

    title = _meta_content(soup, ('property', 'og:title'), ('name', 'twitter:title'))
    if not title and soup.title and soup.title.string:
        title = soup.title.string
    description = _meta_content(
        soup,
        ('property', 'og:description'),
        ('name', 'twitter:description'),
        ('name', 'description'),
    )

    return {
        'title': clean_text(title or '') or 'Untitled Article',
        'description': clean_text(description or '') or 'No description available',
        'image': extract_headline_image(soup),
    }


# ---------------------------------------------------------------------------
# Platform fast paths
# ---------------------------------------------------------------------------

_TWITTER_RE = re.compile(r'^(?:mobile\.)?(?:twitter|x)\.com$')
_YOUTUBE_RE = re.compile(r'^(?:m\.)?(?:youtube\.com|youtu\.be)$')


def _fetch_twitter_oembed(url: str, timeout: int) -> dict | None:
    try:
        resp = requests.get(
            'https://publish.twitter.com/oembed',
            params={'url': url, 'omit_script': 'true'},
            headers=_HEADERS,
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.info('Twitter oEmbed failed for %s: %s', url, e)
        return None

    author = data.get('author_name', '')
    tweet_text = clean_text(BeautifulSoup(data.get('html', ''), 'html.parser').get_text(' '))
    return {
        'title': f'Post by {author}' if author else 'Post on X',
        'description': tweet_text or 'No description available',
        'image': '',
    }


def _fetch_youtube_oembed(url: str, timeout: int) -> dict | None:
    try:
        resp = requests.get(
            'https://www.youtube.com/oembed',
            params={'url': url, 'format': 'json'},
            headers=_HEADERS,
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.info('YouTube oEmbed failed for %s: %s', url, e)
        return None

    author = data.get('author_name', '')
    return {
        'title': clean_text(data.get('title', '')) or 'Untitled Video',
        'description': f'Video by {author} on YouTube' if author else 'Video on YouTube',
        'image': normalize_image_url(data.get('thumbnail_url', '')),
    }


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def analyze_content(title: str, description: str, domain: str) -> dict:
    """Category and reading-time estimate, with a fixed fallback."""
    prompt = f"""Analyze this article and provide a category and estimated reading time.

Title: {title}
Description: {description}
Domain: {domain}

Categorize this article into one of these categories: {', '.join(f'"{c}"' for c in CATEGORIES)}

Estimate reading time based on typical article length for this type of content (3-15 minutes).

Respond with JSON in this exact format:
{{
  "category": "category_name",
  "estimatedReadTime": number_in_minutes
}}"""

    try:
        result = llm.complete_json(prompt)
    except llm.LLMUnavailable as e:
        logger.info('Skipping AI classification: %s', e)
        return {'category': DEFAULT_CATEGORY, 'estimated_read_time': DEFAULT_READ_TIME}
    except Exception as e:
        logger.warning('Error analyzing content with AI: %s', e)
        return {'category': DEFAULT_CATEGORY, 'estimated_read_time': DEFAULT_READ_TIME}

    category = str(result.get('category') or 'general').lower()
    category = _CATEGORY_ALIASES.get(category, category)
    if category not in CATEGORIES:
        category = 'general'

    try:
        read_time = int(result.get('estimatedReadTime') or DEFAULT_READ_TIME)
    except (TypeError, ValueError):
        read_time = DEFAULT_READ_TIME

    return {'category': category, 'estimated_read_time': max(1, min(15, read_time))}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def _fetch_page_metadata(url: str, timeout: int) -> dict | None:
    try:
        response = requests.get(url, headers=_HEADERS, timeout=timeout)
    except requests.RequestException as e:
        logger.info('Failed to fetch %s: %s', url, e)
        return None
    if response.status_code >= 400:
        logger.info('Failed to fetch %s: HTTP %d', url, response.status_code)
        return None
    return parse_html_metadata(response.text)


def extract_metadata(url: str) -> dict | None:
    """Preview metadata for ``url``.

    Returns a dict with: title, description, image, domain, category,
    estimated_read_time. Returns None if the URL is invalid, blocked or
    could not be fetched.
    """
    if not is_valid_url(url):
        logger.info('Invalid URL: %s', url)
        return None

    domain = extract_domain(url)
    if is_blocked_domain(domain):
        logger.info('Blocked domain: %s', domain)
        return None

    cached = _get_cached(url)
    if cached is not None:
        return cached

    timeout = current_app.config.get('METADATA_REQUEST_TIMEOUT', 10)

    if _TWITTER_RE.match(domain):
        metadata = _fetch_twitter_oembed(url, timeout)
    elif _YOUTUBE_RE.match(domain):
        metadata = _fetch_youtube_oembed(url, timeout)
    else:
        metadata = None

    if metadata is None:
        metadata = _fetch_page_metadata(url, timeout)
    if metadata is None:
        return None

    analysis = analyze_content(metadata['title'], metadata['description'], domain)
    result = {
        **metadata,
        'domain': domain,
        'category': analysis['category'],
        'estimated_read_time': analysis['estimated_read_time'],
    }
    _set_cached(url, result)
    return result
