from flask import Blueprint, jsonify
from readdaily.models.category import Category

bp = Blueprint('categories', __name__, url_prefix='/api/categories')


@bp.route('', methods=['GET'])
def list_categories():
    categories = Category.query.order_by(Category.name.asc()).all()
    return jsonify({'categories': [
        {'id': c.id, 'name': c.name, 'description': c.description}
        for c in categories
    ]})
