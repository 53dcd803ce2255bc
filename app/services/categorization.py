"""Category resolution for posts.

Maps AI-suggested category names to ids, builds the final category id list
and keeps category post counts up to date.
"""
import logging

from sqlalchemy import func

from app import db
from app.models import Category, MAX_POST_CATEGORIES

logger = logging.getLogger(__name__)


def build_category_ids(primary_id, *candidate_groups, limit=MAX_POST_CATEGORIES):
    """Build a post's category id list.

    The primary id always comes first, followed by unseen ids from each
    candidate group in order. Duplicates and empty values are dropped and the
    result is truncated to ``limit`` entries.
    """
    if not primary_id:
        raise ValueError('A primary category id is required')

    result = [primary_id]
    for group in candidate_groups:
        for category_id in group or ():
            if len(result) >= limit:
                return result
            if category_id and category_id not in result:
                result.append(category_id)
    return result


def get_category_names():
    """All category names, alphabetically."""
    rows = db.session.query(Category.name).order_by(Category.name.asc()).all()
    return [name for (name,) in rows if name and name.strip()]


def get_category_ids_by_names(names):
    """Resolve names to ids case-insensitively, preserving the order of ``names``."""
    wanted = [n.strip().lower() for n in names or [] if isinstance(n, str) and n.strip()]
    if not wanted:
        return []

    rows = Category.query.filter(func.lower(Category.name).in_(set(wanted))).all()
    by_name = {row.name.lower(): row.id for row in rows}

    ids = []
    for name in wanted:
        category_id = by_name.get(name)
        if category_id and category_id not in ids:
            ids.append(category_id)
    return ids


def secondary_category_names(names, primary_name):
    """Names other than ``primary_name`` (case-insensitive), deduplicated."""
    primary = (primary_name or '').lower()
    result = []
    seen = set()
    for name in names or []:
        if not isinstance(name, str):
            continue
        key = name.lower()
        if key == primary or key in seen:
            continue
        seen.add(key)
        result.append(name)
    return result


def increment_post_count(category_id, amount=1):
    """Increment one category's post count. Raises when the category is missing."""
    updated = Category.query.filter_by(id=category_id).update(
        {Category.post_count: Category.post_count + amount},
        synchronize_session=False
    )
    if not updated:
        raise LookupError(f'Category {category_id} not found')
    return updated


def decrement_post_count(category_id):
    """Decrement one category's post count, never below zero."""
    return Category.query.filter(
        Category.id == category_id, Category.post_count > 0
    ).update({Category.post_count: Category.post_count - 1}, synchronize_session=False)


def get_category_names_by_ids(category_ids):
    if not category_ids:
        return {}
    rows = Category.query.filter(Category.id.in_(category_ids)).all()
    return {row.id: row.name for row in rows}
