"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``register_error_handlers`` turns them into JSON
responses. Nothing here is retried.
"""

from flask import jsonify


class ReadDailyError(Exception):
    status_code = 400

    def __init__(self, message):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'error': self.message}


class ValidationError(ReadDailyError):
    """Rejected input (empty comment, missing onboarding field, ...)."""
    status_code = 400


class Forbidden(ReadDailyError):
    status_code = 403


class NotFoundError(ReadDailyError):
    """Unknown user or article id."""
    status_code = 404


class UpstreamUnavailable(ReadDailyError):
    """A scraping or LLM collaborator failed; caller degrades gracefully."""
    status_code = 422

    def __init__(self, url, detail):
        self.url = url
        self.detail = detail
        super().__init__(detail)

    def to_dict(self):
        return {
            'error': self.message,
            'error_code': 'UPSTREAM_UNAVAILABLE',
            'url': self.url,
        }


def register_error_handlers(app):
    @app.errorhandler(ReadDailyError)
    def handle_readdaily_error(e):
        if isinstance(e, UpstreamUnavailable):
            app.logger.warning('Upstream unavailable for %s: %s', e.url, e.detail)
        return jsonify(e.to_dict()), e.status_code
