"""Category routes: GET /api/categories."""

from flask import Blueprint, request, jsonify
from sqlalchemy import func

from app import db
from app.errors import NotFoundError, error_response
from app.models import Category, Post

categories_bp = Blueprint('categories', __name__)


def _primary_post_counts():
    rows = db.session.query(Post.category_id, func.count(Post.id)).group_by(Post.category_id).all()
    return dict(rows)


def _category_dict(category, counts):
    return dict(category.to_dict(), count=counts.get(category.id, 0))


@categories_bp.route('', methods=['GET'])
def get_categories():
    """List categories, busiest first.

    ``?name=`` looks up a single category case-insensitively instead.
    ``count`` is the live number of posts with the category as primary;
    ``postCount`` is the running counter that includes secondary categories.
    """
    try:
        counts = _primary_post_counts()
        name = request.args.get('name')

        if name:
            category = Category.query.filter(func.lower(Category.name) == name.strip().lower()).first()
            if not category:
                raise NotFoundError('Category not found', code='CATEGORY_NOT_FOUND')
            return jsonify({'category': _category_dict(category, counts)}), 200

        categories = Category.query.order_by(Category.post_count.desc(), Category.name.asc()).all()
        return jsonify({'categories': [_category_dict(c, counts) for c in categories]}), 200
    except Exception as e:
        return error_response(e)
