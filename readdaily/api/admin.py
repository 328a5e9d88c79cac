from flask import Blueprint, jsonify
from readdaily.api.serializers import article_to_dict
from readdaily.middleware.auth import require_auth, require_admin
from readdaily.services import analytics, content_automation
from readdaily.services.reading_history import utc_today

bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@bp.route('/analytics', methods=['GET'])
@require_auth
@require_admin
def all_users_analytics():
    return jsonify({'users': analytics.get_all_users_analytics()})


@bp.route('/automation/run', methods=['POST'])
@require_auth
@require_admin
def run_automation():
    """Run one content automation pass now."""
    saved = content_automation.process_daily_content(utc_today())
    return jsonify({
        'message': 'Content automation completed successfully',
        'articles': [article_to_dict(a) for a in saved],
    })
