from flask import Blueprint, current_app, g, jsonify, request
from readdaily.api.serializers import profile_to_dict
from readdaily.middleware.auth import require_auth
from readdaily.services import analytics
from readdaily.services.reading_history import utc_today
from readdaily.services.user_sync import find_or_create_user

bp = Blueprint('auth', __name__, url_prefix='/api')


@bp.route('/config', methods=['GET'])
def get_config():
    """Public client configuration."""
    return jsonify({'google_client_id': current_app.config.get('GOOGLE_CLIENT_ID', '')})


@bp.route('/auth/session', methods=['POST'])
@require_auth
def start_session():
    """Sign in: merge device-local state, refresh role, start a session.

    Accepts (optional): { local_data: {name, join_date, preferences,
    read_articles, streak_data} }
    """
    data = request.get_json(silent=True) or {}
    local_data = data.get('local_data')
    if local_data is not None and not isinstance(local_data, dict):
        return jsonify({'error': 'local_data must be an object'}), 400

    today = utc_today()
    profile = find_or_create_user(
        g.user_profile.email,
        g.user_profile.name,
        local_data=local_data,
        today=today,
    )
    session = analytics.start_session(
        profile.id,
        device_info=request.headers.get('User-Agent'),
        ip_address=request.remote_addr,
    )
    return jsonify({'user': profile_to_dict(profile, today), 'session_id': session.id})


@bp.route('/auth/signout', methods=['POST'])
@require_auth
def sign_out():
    analytics.end_user_sessions(g.user_id)
    return jsonify({'ok': True})
