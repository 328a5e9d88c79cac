import jwt
from jwt import PyJWKClient
from functools import wraps
from flask import request, jsonify, g, current_app
from readdaily.errors import Forbidden
from readdaily.models.user_profile import UserProfile
from readdaily.services.user_sync import find_or_create_user

GOOGLE_JWKS_URL = 'https://www.googleapis.com/oauth2/v3/certs'
GOOGLE_ISSUERS = ('accounts.google.com', 'https://accounts.google.com')

# Module-level JWKS client, keys cached across requests
_jwks_client = None


def _get_jwks_client():
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = PyJWKClient(GOOGLE_JWKS_URL, cache_keys=True)
    return _jwks_client


def _decode_token(token):
    """Decode and verify a Google Sign-In ID token (RS256)."""
    client = _get_jwks_client()
    signing_key = client.get_signing_key_from_jwt(token)
    payload = jwt.decode(
        token,
        signing_key.key,
        algorithms=['RS256'],
        audience=current_app.config['GOOGLE_CLIENT_ID'],
    )
    if payload.get('iss') not in GOOGLE_ISSUERS:
        raise jwt.InvalidIssuerError('Unexpected token issuer')
    return payload


def _bearer_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[7:]
    return None


def require_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({'error': 'Missing authorization token'}), 401

        try:
            payload = _decode_token(token)
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token expired'}), 401
        except jwt.InvalidTokenError:
            return jsonify({'error': 'Invalid token'}), 401

        email = (payload.get('email') or '').lower()
        if not email or not payload.get('email_verified', True):
            return jsonify({'error': 'Invalid token payload'}), 401

        # Auto-create profile on first request
        profile = UserProfile.query.filter_by(email=email).first()
        if not profile:
            profile = find_or_create_user(email, payload.get('name') or email.split('@')[0])

        g.user_id = profile.id
        g.user_profile = profile
        g.jwt_payload = payload

        return f(*args, **kwargs)
    return decorated


def optional_auth(f):
    """Like require_auth but doesn't fail if no token present."""
    @wraps(f)
    def decorated(*args, **kwargs):
        g.user_id = None
        g.user_profile = None
        g.jwt_payload = None

        token = _bearer_token()
        if token:
            try:
                payload = _decode_token(token)
                email = (payload.get('email') or '').lower()
                profile = UserProfile.query.filter_by(email=email).first() if email else None
                if profile:
                    g.user_id = profile.id
                    g.user_profile = profile
                    g.jwt_payload = payload
            except jwt.InvalidTokenError:
                pass  # Proceed without auth

        return f(*args, **kwargs)
    return decorated


def require_admin(f):
    """Use below require_auth. Checks the role resolved at sign-in."""
    @wraps(f)
    def decorated(*args, **kwargs):
        profile = getattr(g, 'user_profile', None)
        if profile is None or not profile.is_admin:
            raise Forbidden('Admin access required')
        return f(*args, **kwargs)
    return decorated
