"""Post listing: GET /api/posts."""

import logging
import math

from flask import request, jsonify, make_response
from sqlalchemy import or_, cast, String
from sqlalchemy.orm import selectinload

from app import db
from app.errors import ValidationError, NotFoundError, error_response
from app.models import Post, User, UserBadge
from app.routes.posts import posts_bp
from app.routes.posts.helpers import (
    NO_CACHE_HEADERS,
    get_attachments,
    get_comment_counts,
    get_top_comments,
    get_user_votes,
    get_vote_counts,
    is_uuid,
    transform_post,
)
from app.services.categorization import get_category_names_by_ids
from app.services.response_cache import get_response_cache, make_key
from app.utils import token_optional

logger = logging.getLogger(__name__)

MAX_PAGE = 1000
MAX_LIMIT = 100
DEFAULT_LIMIT = 10

SORT_FIELDS = {'createdAt', 'updatedAt', 'upvotes', 'comments'}
SORT_ORDERS = {'asc', 'desc'}

# Sort fields that cannot be pushed down to the database
IN_MEMORY_SORTS = {'upvotes', 'comments'}

_COLUMN_SORTS = {
    'createdAt': Post.created_at,
    'updatedAt': Post.updated_at,
}

CACHEABLE_HEADERS = {
    'Cache-Control': 'private, max-age=60, must-revalidate',
}


def _parse_int(name, default, minimum, maximum, errors):
    raw = request.args.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except ValueError:
        errors[name] = f'{name} must be an integer'
        return default
    if value < minimum or value > maximum:
        errors[name] = f'{name} must be between {minimum} and {maximum}'
    return value


def parse_list_params():
    """Validate listing query parameters. Raises ValidationError with per-field details."""
    errors = {}
    page = _parse_int('page', 1, 1, MAX_PAGE, errors)
    limit = _parse_int('limit', DEFAULT_LIMIT, 1, MAX_LIMIT, errors)

    sort_by = request.args.get('sortBy') or 'createdAt'
    if sort_by not in SORT_FIELDS:
        errors['sortBy'] = f"sortBy must be one of: {', '.join(sorted(SORT_FIELDS))}"

    sort_order = (request.args.get('sortOrder') or 'desc').lower()
    if sort_order not in SORT_ORDERS:
        errors['sortOrder'] = 'sortOrder must be asc or desc'

    category = request.args.get('category') or None
    if category == 'all':
        category = None
    if category and not is_uuid(category):
        errors['category'] = 'category must be a valid UUID'

    author_id = request.args.get('authorId') or None
    if author_id and not is_uuid(author_id):
        errors['authorId'] = 'authorId must be a valid UUID'

    if errors:
        raise ValidationError('Invalid query parameters', details=errors)

    return {
        'page': page,
        'limit': limit,
        'sort_by': sort_by,
        'sort_order': sort_order,
        'category': category,
        'author_id': author_id,
    }


def _filtered_query(params):
    query = Post.query
    if params['category']:
        category = params['category']
        query = query.filter(or_(
            Post.category_id == category,
            cast(Post.category_ids, String).like(f'%"{category}"%')
        ))
    if params['author_id']:
        query = query.filter(Post.author_id == params['author_id'])
    return query


def _with_author_badges(query):
    return query.options(
        selectinload(Post.author).selectinload(User.badges).joinedload(UserBadge.badge),
        selectinload(Post.attachments),
    )


def _sort_in_memory(post_ids, params):
    """Order every filtered post by votes or comments in application memory."""
    if params['sort_by'] == 'upvotes':
        counts = get_vote_counts(post_ids)
        score = {pid: c['upvotes'] - c['downvotes'] for pid, c in counts.items()}
    else:
        score = get_comment_counts(post_ids)
    return score


def load_page(params, viewer_id=None):
    """Run the listing queries for one page. Returns the response payload."""
    base = _filtered_query(params)
    total = base.count()
    limit = params['limit']
    pages = math.ceil(total / limit) if total else 0
    pagination = {
        'total': total,
        'pages': pages,
        'currentPage': params['page'],
        'limit': limit,
    }

    if total and params['page'] > pages:
        raise NotFoundError(
            f"Page {params['page']} does not exist",
            code='PAGE_NOT_FOUND',
            details={'pagination': pagination},
        )

    offset = (params['page'] - 1) * limit
    descending = params['sort_order'] == 'desc'

    if params['sort_by'] in IN_MEMORY_SORTS:
        rows = base.with_entities(Post.id, Post.created_at).all()
        score = _sort_in_memory([r.id for r in rows], params)
        rows.sort(key=lambda r: (score.get(r.id, 0), r.created_at), reverse=descending)
        page_ids = [r.id for r in rows[offset:offset + limit]]
        loaded = {p.id: p for p in _with_author_badges(Post.query.filter(Post.id.in_(page_ids))).all()} \
            if page_ids else {}
        posts = [loaded[pid] for pid in page_ids if pid in loaded]
    else:
        column = _COLUMN_SORTS[params['sort_by']]
        order = column.desc() if descending else column.asc()
        posts = _with_author_badges(base.order_by(order, Post.id)).offset(offset).limit(limit).all()

    post_ids = [p.id for p in posts]
    all_category_ids = {cid for p in posts for cid in (p.category_ids or [p.category_id])}

    vote_counts = get_vote_counts(post_ids)
    comment_counts = get_comment_counts(post_ids)
    attachments = get_attachments(post_ids)
    user_votes = get_user_votes(viewer_id, post_ids)
    top_comments = get_top_comments(post_ids)
    category_names = get_category_names_by_ids(list(all_category_ids))

    return {
        'posts': [
            transform_post(
                post,
                votes=vote_counts[post.id],
                user_vote=user_votes.get(post.id),
                comment_count=comment_counts[post.id],
                attachments=attachments[post.id],
                category_names=category_names,
                top_comment=top_comments[post.id],
            )
            for post in posts
        ],
        'pagination': pagination,
    }


def _respond(payload, status, etag, cache_state, extra_headers):
    response = make_response(jsonify(payload) if payload is not None else '', status)
    if etag:
        response.headers['ETag'] = etag
    response.headers['X-Cache'] = cache_state
    for header, value in extra_headers.items():
        response.headers[header] = value
    return response


@posts_bp.route('', methods=['GET'])
@token_optional
def get_posts(current_user_id):
    """List posts.

    Query params:
        - page (1-1000), limit (1-100)
        - category, authorId: UUID filters
        - sortBy: createdAt | updatedAt | upvotes | comments
        - sortOrder: asc | desc
        - _t: any value bypasses the response cache

    Responses for signed-in viewers include their own votes and are never
    cached.
    """
    try:
        params = parse_list_params()
        cache = get_response_cache()
        bypass = '_t' in request.args or current_user_id is not None
        key = make_key(
            page=params['page'],
            limit=params['limit'],
            category=params['category'],
            sort_by=params['sort_by'],
            sort_order=params['sort_order'],
            author_id=params['author_id'],
        )

        if not bypass:
            entry = cache.get(key)
            if entry is not None:
                if cache.is_not_modified(entry, request.headers.get('If-None-Match')):
                    return _respond(None, 304, entry.etag, 'HIT-304', CACHEABLE_HEADERS)
                return _respond(entry.data, 200, entry.etag, 'HIT', CACHEABLE_HEADERS)

        payload = load_page(params, viewer_id=current_user_id)

        if bypass:
            return _respond(payload, 200, None, 'MISS', NO_CACHE_HEADERS)

        entry = cache.set(key, payload)
        return _respond(payload, 200, entry.etag if entry else None, 'MISS', CACHEABLE_HEADERS)

    except NotFoundError as e:
        return error_response(e, pagination=e.details['pagination'])
    except Exception as e:
        db.session.rollback()
        return error_response(e)
