"""Notification routes: in-app notification list and notification emails."""

import logging

from flask import Blueprint, request, jsonify

from app import db
from app.errors import ValidationError, error_response
from app.models import Notification, NotificationType
from app.services.notifications import send_mention_notifications, send_notification_email
from app.utils import token_required

logger = logging.getLogger(__name__)

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('', methods=['GET'])
@token_required
def get_notifications(current_user_id):
    """Get notifications for the current user.

    Query params:
        - unread_only: If 'true', only return unread notifications
        - page: Page number (default 1)
        - per_page: Results per page (default 20, max 100)
    """
    try:
        unread_only = request.args.get('unread_only', 'false').lower() == 'true'
        page = request.args.get('page', 1, type=int)
        per_page = min(request.args.get('per_page', 20, type=int), 100)

        query = Notification.query.filter_by(user_id=current_user_id)
        if unread_only:
            query = query.filter_by(is_read=False)

        notifications = query.order_by(Notification.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

        return jsonify({
            'notifications': [n.to_dict() for n in notifications.items],
            'total': notifications.total,
            'page': page,
            'per_page': per_page,
            'has_more': notifications.has_next,
            'unread_count': Notification.query.filter_by(
                user_id=current_user_id,
                is_read=False
            ).count()
        }), 200
    except Exception as e:
        return error_response(e)


@notifications_bp.route('/email', methods=['POST'])
def send_email_notification():
    """Email one user about an activity.

    Body: {"type": "POST_LIKE" | "POST_COMMENT" | "MENTION" | ..., "userId": "...", "data": {...}}
    """
    try:
        body = request.get_json(silent=True) or {}
        notification_type = body.get('type')
        user_id = body.get('userId')

        errors = {}
        if notification_type not in NotificationType.ALL:
            errors['type'] = 'Unknown notification type'
        if not user_id:
            errors['userId'] = 'userId is required'
        if errors:
            raise ValidationError('Invalid notification request', details=errors)

        sent = send_notification_email(user_id, notification_type, body.get('data') or {})
        return jsonify({'success': True, 'sent': sent}), 200
    except Exception as e:
        db.session.rollback()
        return error_response(e)


@notifications_bp.route('/email', methods=['PUT'])
def send_mention_emails():
    """Email every user @mentioned in a post.

    Body: {"content": "...", "authorId": "...", "postId": "...", "postTitle": "..."}
    """
    try:
        body = request.get_json(silent=True) or {}
        errors = {field: f'{field} is required' for field in ('content', 'authorId', 'postId') if not body.get(field)}
        if errors:
            raise ValidationError('Invalid mention request', details=errors)

        sent = send_mention_notifications(
            body['content'], body['authorId'], body['postId'], body.get('postTitle') or ''
        )
        logger.info(f"[EMAIL] Sent {sent} mention emails for post {body['postId']}")
        return jsonify({'success': True, 'sent': sent}), 200
    except Exception as e:
        db.session.rollback()
        return error_response(e)
