"""Single post: GET/PUT/DELETE /api/posts/<post_id>."""

import logging

from flask import jsonify

from app import db
from app.constants import is_english
from app.errors import ForbiddenError, NotFoundError, ValidationError, error_response
from app.models import Post
from app.routes.posts import posts_bp
from app.routes.posts.helpers import (
    MAX_TAGS,
    content_error,
    get_comment_counts,
    get_top_comments,
    get_user_votes,
    get_vote_counts,
    in_savepoint,
    parse_bool,
    parse_string_list,
    request_data,
    transform_post,
)
from app.services.categorization import decrement_post_count
from app.services.response_cache import invalidate_posts_cache
from app.utils import token_optional, token_required
from app.utils.diagnostics import Diagnostics

logger = logging.getLogger(__name__)


def _get_post_or_404(post_id):
    post = db.session.get(Post, post_id)
    if post is None:
        raise NotFoundError('Post not found', code='POST_NOT_FOUND')
    return post


def _get_own_post(post_id, current_user_id):
    post = _get_post_or_404(post_id)
    if post.author_id != current_user_id:
        raise ForbiddenError('Only the author can change this post')
    return post


def _full_post(post, viewer_id=None):
    ids = [post.id]
    return transform_post(
        post,
        votes=get_vote_counts(ids)[post.id],
        user_vote=get_user_votes(viewer_id, ids).get(post.id),
        comment_count=get_comment_counts(ids)[post.id],
        top_comment=get_top_comments(ids)[post.id],
    )


@posts_bp.route('/<post_id>', methods=['GET'])
@token_optional
def get_post(current_user_id, post_id):
    """Fetch one post with its vote counts, the viewer's vote and top comment."""
    try:
        post = _get_post_or_404(post_id)
        return jsonify({'post': _full_post(post, current_user_id)}), 200
    except Exception as e:
        return error_response(e)


@posts_bp.route('/<post_id>', methods=['PUT'])
@token_required
def update_post(current_user_id, post_id):
    """Edit a post (author only).

    Accepts any of: content, isAnonymous, tags. Categories and attachments
    are fixed at creation.
    """
    try:
        post = _get_own_post(post_id, current_user_id)
        data = request_data()
        errors = {}

        if 'content' in data:
            problem = content_error(data['content'])
            if problem:
                errors['content'] = problem
        if 'tags' in data:
            tags = parse_string_list(data['tags'], 'tags', MAX_TAGS, errors)

        if errors:
            raise ValidationError('Invalid post data', details=errors)

        if 'content' in data and data['content'] != post.content:
            post.content = data['content']
            # The stored translation described the old text
            post.translated_content = data['content'] if is_english(post.original_language) else None
        if 'isAnonymous' in data:
            post.is_anonymous = parse_bool(data['isAnonymous'])
        if 'tags' in data:
            post.tags = tags

        db.session.commit()
        invalidate_posts_cache()
        logger.info(f"[POSTS] Updated post {post_id} by {current_user_id}")

        return jsonify({
            'message': 'Post updated successfully',
            'post': _full_post(post, current_user_id),
        }), 200
    except Exception as e:
        db.session.rollback()
        return error_response(e)


@posts_bp.route('/<post_id>', methods=['DELETE'])
@token_required
def delete_post(current_user_id, post_id):
    """Delete a post with its comments, votes and attachments (author only)."""
    try:
        post = _get_own_post(post_id, current_user_id)
        category_ids = list(post.category_ids or [post.category_id])

        db.session.delete(post)
        db.session.flush()

        diagnostics = Diagnostics(f'[POSTS] delete {post_id}')
        for category_id in category_ids:
            diagnostics.attempt(f'decrement {category_id}', in_savepoint, decrement_post_count, category_id)

        db.session.commit()
        invalidate_posts_cache()
        logger.info(f"[POSTS] Deleted post {post_id} by {current_user_id}")

        return jsonify({'message': 'Post deleted successfully', 'success': True}), 200
    except Exception as e:
        db.session.rollback()
        return error_response(e)
