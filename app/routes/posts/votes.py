"""Post votes: POST/GET /api/posts/<post_id>/vote."""

import logging

from flask import request, jsonify

from app import db
from app.errors import NotFoundError, RateLimitError, ValidationError, error_response
from app.models import Post, VoteType
from app.routes.posts import posts_bp
from app.routes.posts.helpers import get_vote_rate_limiter
from app.services.notifications import notify_post_like
from app.services.response_cache import invalidate_posts_cache
from app.services.votes import VoteOperation, count_votes, get_user_vote, toggle_vote
from app.utils import token_optional, token_required, send_notification_safe

logger = logging.getLogger(__name__)


@posts_bp.route('/<post_id>/vote', methods=['POST'])
@token_required
def vote_on_post(current_user_id, post_id):
    """Toggle the current user's vote.

    Body: {"type": "UP" | "DOWN"}
    """
    try:
        data = request.get_json(silent=True) or {}
        vote_type = str(data.get('type') or '').upper()
        if vote_type not in VoteType.ALL:
            raise ValidationError('Invalid vote type', details={'type': 'type must be UP or DOWN'})

        if not get_vote_rate_limiter().hit(current_user_id):
            logger.warning(f"[VOTE] Rate limit exceeded for {current_user_id}")
            raise RateLimitError('Too many votes. Please slow down.')

        result = toggle_vote(post_id, current_user_id, vote_type)

        if vote_type == VoteType.UP and result.operation in (VoteOperation.CREATED, VoteOperation.UPDATED):
            send_notification_safe(notify_post_like, post_id, current_user_id)

        invalidate_posts_cache()
        return jsonify(result.to_dict()), 200

    except Exception as e:
        db.session.rollback()
        return error_response(e)


@posts_bp.route('/<post_id>/vote', methods=['GET'])
@token_optional
def get_post_votes(current_user_id, post_id):
    """Current vote counts; userVote is null for anonymous callers."""
    try:
        if db.session.get(Post, post_id) is None:
            raise NotFoundError('Post not found', code='POST_NOT_FOUND')

        upvotes, downvotes = count_votes(post_id)
        return jsonify({
            'upvotes': upvotes,
            'downvotes': downvotes,
            'userVote': get_user_vote(post_id, current_user_id),
            'success': True,
        }), 200

    except Exception as e:
        return error_response(e)
