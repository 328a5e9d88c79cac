import math

from bs4 import BeautifulSoup


def count_words(text: str) -> int:
    """Strip any HTML tags and count words."""
    plain = BeautifulSoup(text, 'html.parser').get_text(separator=' ')
    return len(plain.split())


def reading_time_minutes(word_count: int, wpm: int = 200) -> int:
    """Estimated reading time in minutes, rounded up, at least one."""
    return max(1, math.ceil(word_count / wpm))
