"""Thin wrapper around the OpenAI chat API for JSON answers."""

import json
import logging
import re

from flask import current_app
from openai import OpenAI

logger = logging.getLogger(__name__)

_client = None
_client_key = None


class LLMUnavailable(Exception):
    pass


def get_client():
    """Lazy-init the OpenAI client for the configured key."""
    global _client, _client_key
    api_key = current_app.config.get('OPENAI_API_KEY')
    if not api_key:
        raise LLMUnavailable('OPENAI_API_KEY is not configured')
    if _client is None or _client_key != api_key:
        _client = OpenAI(api_key=api_key)
        _client_key = api_key
    return _client


_FENCED_JSON_RE = re.compile(r'```(?:json)?\s*(\{.*?\})\s*```', re.DOTALL)
_BARE_OBJECT_RE = re.compile(r'\{.*\}', re.DOTALL)


def parse_json_reply(text: str) -> dict:
    """Parse a model reply that should be JSON but may be wrapped in prose."""
    try:
        return json.loads(text)
    except ValueError:
        pass
    candidates = []
    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    bare = _BARE_OBJECT_RE.search(text)
    if bare:
        candidates.append(bare.group(0))
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except ValueError:
            continue
    raise ValueError('No valid JSON found in response')


def complete_json(prompt: str, system: str = None, temperature: float = None, max_tokens: int = None) -> dict:
    """Ask the model for a JSON object and return it parsed.

    Raises LLMUnavailable when no key is configured; API and parse errors
    propagate so callers can choose their fallback.
    """
    client = get_client()
    messages = []
    if system:
        messages.append({'role': 'system', 'content': system})
    messages.append({'role': 'user', 'content': prompt})

    kwargs = {}
    if temperature is not None:
        kwargs['temperature'] = temperature
    if max_tokens is not None:
        kwargs['max_tokens'] = max_tokens

    response = client.chat.completions.create(
        model=current_app.config.get('OPENAI_MODEL', 'gpt-4o'),
        messages=messages,
        response_format={'type': 'json_object'},
        **kwargs,
    )
    content = response.choices[0].message.content
    if not content:
        raise ValueError('Empty response from OpenAI')
    return parse_json_reply(content)
