"""Post comments: list, create and count under /api/posts/<post_id>/comments."""

import logging

from flask import jsonify

from app import db
from app.errors import AuthenticationError, NotFoundError, ValidationError, error_response
from app.models import Comment, Post, User
from app.routes.posts import posts_bp
from app.routes.posts.helpers import content_error, request_data
from app.services.badges import check_and_award_badges
from app.services.notifications import notify_new_comment
from app.services.response_cache import invalidate_posts_cache
from app.services.tasks import get_task_queue
from app.utils import token_required, send_notification_safe

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 5000


def build_comment_tree(comments):
    """Nest replies under their parents.

    Top-level comments come newest first; replies at every level stay in
    the order they were written.
    """
    children = {}
    for comment in comments:
        children.setdefault(comment.parent_id, []).append(comment)

    def branch(parent_id):
        nodes = sorted(children.get(parent_id, []), key=lambda c: c.created_at)
        return [dict(c.to_dict(), replies=branch(c.id)) for c in nodes]

    return list(reversed(branch(None)))


@posts_bp.route('/<post_id>/comments', methods=['GET'])
def get_comments(post_id):
    """List a post's comments as a reply tree."""
    try:
        if db.session.get(Post, post_id) is None:
            raise NotFoundError('Post not found', code='POST_NOT_FOUND')

        comments = Comment.query.filter_by(post_id=post_id).order_by(Comment.created_at.asc()).all()
        return jsonify({'comments': build_comment_tree(comments), 'count': len(comments)}), 200
    except Exception as e:
        return error_response(e)


@posts_bp.route('/<post_id>/comments', methods=['POST'])
@token_required
def create_comment(current_user_id, post_id):
    """Comment on a post, or reply to a comment with ``parentId``.

    Body: {"content": "...", "parentId": "<comment id>"?}
    """
    try:
        if db.session.get(User, current_user_id) is None:
            raise AuthenticationError('User not found')
        if db.session.get(Post, post_id) is None:
            raise NotFoundError('Post not found', code='POST_NOT_FOUND')

        data = request_data()
        content = data.get('content')
        problem = content_error(content, max_length=MAX_COMMENT_LENGTH)
        if problem:
            raise ValidationError('Invalid comment', details={'content': problem})

        parent_id = data.get('parentId') or None
        if parent_id:
            parent = db.session.get(Comment, parent_id)
            if parent is None or parent.post_id != post_id:
                raise NotFoundError('Parent comment not found', code='COMMENT_NOT_FOUND')

        comment = Comment(post_id=post_id, author_id=current_user_id, content=content, parent_id=parent_id)
        db.session.add(comment)
        db.session.commit()
        result = comment.to_dict()
        logger.info(f"[POSTS] Comment {comment.id} by {current_user_id} on {post_id}")

        send_notification_safe(notify_new_comment, comment.id)
        get_task_queue().publish('badge check', check_and_award_badges, current_user_id)
        invalidate_posts_cache()

        return jsonify({'comment': dict(result, replies=[]), 'success': True}), 201
    except Exception as e:
        db.session.rollback()
        return error_response(e)


@posts_bp.route('/<post_id>/comments/count', methods=['GET'])
def get_comment_count(post_id):
    try:
        count = Comment.query.filter_by(post_id=post_id).count()
        return jsonify({'postId': post_id, 'count': count, 'success': True}), 200
    except Exception as e:
        return error_response(e)
