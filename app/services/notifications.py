"""In-app notifications and notification emails."""

import logging
import re

import requests
from flask import current_app
from sqlalchemy import func

from app import db
from app.models import Comment, Notification, NotificationType, Post, User
from app.services.email import email_service
from app.utils.user_helpers import get_display_name

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r'@(\w+)')
MENTION_DISPATCH_TIMEOUT = 5

_TITLES = {
    NotificationType.POST_LIKE: 'New like',
    NotificationType.MENTION: 'You were mentioned',
    NotificationType.POST_COMMENT: 'New comment',
    NotificationType.COMMENT_REPLY: 'New reply',
}


def post_preview(content, limit=50):
    """Plain-text preview of post content for titles and emails."""
    clean = re.sub(r'<[^>]*>', '', content or '')
    clean = re.sub(r'\s+', ' ', clean).strip()
    return clean[:limit] + '...' if len(clean) > limit else clean


def extract_mentions(content):
    """Unique @handles in order of appearance."""
    seen = []
    for handle in MENTION_PATTERN.findall(content or ''):
        if handle not in seen:
            seen.append(handle)
    return seen


def get_user_ids_by_names(names):
    if not names:
        return []
    lowered = {n.lower() for n in names}
    rows = db.session.query(User.id).filter(func.lower(User.name).in_(lowered)).all()
    return [user_id for (user_id,) in rows]


def create_activity_notification(user_id, notification_type, data):
    """Persist an in-app notification. Returns the Notification."""
    author_name = data.get('authorName') or 'Someone'
    post_title = data.get('postTitle') or 'your post'
    if notification_type == NotificationType.POST_LIKE:
        message = f'{author_name} liked "{post_title}"'
    elif notification_type == NotificationType.MENTION:
        message = f'{author_name} mentioned you in "{post_title}"'
    elif notification_type == NotificationType.POST_COMMENT:
        message = f'{author_name} commented on "{post_title}"'
    elif notification_type == NotificationType.COMMENT_REPLY:
        message = f'{author_name} replied to your comment on "{post_title}"'
    else:
        message = f'{author_name} interacted with "{post_title}"'

    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=_TITLES.get(notification_type, 'Notification'),
        message=message,
    )
    notification.set_data(data)
    db.session.add(notification)
    db.session.commit()
    return notification


def should_send_email(user, notification_type) -> bool:
    """Respect the recipient's email preferences."""
    if not user or not user.email or not user.email_notifications:
        return False
    preferences = {
        NotificationType.POST_LIKE: user.notify_on_like,
        NotificationType.MENTION: user.notify_on_mention,
        NotificationType.POST_COMMENT: user.notify_on_comment,
        NotificationType.COMMENT_REPLY: user.notify_on_comment,
        NotificationType.SYSTEM: True,
    }
    return bool(preferences.get(notification_type, False))


def send_notification_email(user_id, notification_type, data) -> bool:
    """Email ``user_id`` about an activity. Returns True when sent."""
    user = db.session.get(User, user_id)
    if not should_send_email(user, notification_type):
        logger.info(f"[EMAIL] User {user_id} has disabled {notification_type} email notifications")
        return False

    author = db.session.get(User, data['authorId']) if data.get('authorId') else None
    post = db.session.get(Post, data['postId']) if data.get('postId') else None

    post_title = data.get('postTitle') or (post_preview(post.content) if post else '')
    post_url = data.get('customUrl') or (
        email_service.post_url(data['postId']) if data.get('postId') else email_service.site_url
    )

    subject, html_content, text_content = email_service.build_notification(
        notification_type,
        user_name=get_display_name(user),
        author_name=get_display_name(author),
        post_title=post_title,
        post_url=post_url,
        comment_content=data.get('commentContent'),
    )
    return email_service.send_email(user.email, subject, html_content, text_content)


def notify_post_like(post_id, voter_id):
    """Persist and email a like notification to the post author.

    Nothing happens when the voter is the author.
    Returns True when a notification was created.
    """
    post = db.session.get(Post, post_id)
    voter = db.session.get(User, voter_id)
    if not post or not voter or post.author_id == voter_id:
        return False

    data = {
        'postId': post_id,
        'authorId': voter_id,
        'authorName': get_display_name(voter),
        'postTitle': post_preview(post.content),
        'avatarUrl': voter.image,
    }
    create_activity_notification(post.author_id, NotificationType.POST_LIKE, data)
    sent = send_notification_email(post.author_id, NotificationType.POST_LIKE, {
        'postId': post_id,
        'authorId': voter_id,
        'postTitle': data['postTitle'],
        'customUrl': email_service.post_url(post_id),
    })
    logger.info(f"[EMAIL] Like notification {'sent' if sent else 'not sent'} to post author")
    return True


def notify_new_comment(comment_id):
    """Notify the post author, and for replies the parent comment's author.

    Nobody is notified about their own comment. Returns the notified user ids.
    """
    comment = db.session.get(Comment, comment_id)
    if not comment:
        return []

    recipients = []
    if comment.post and comment.post.author_id != comment.author_id:
        recipients.append((comment.post.author_id, NotificationType.POST_COMMENT))
    parent = comment.parent
    if parent and parent.author_id not in (comment.author_id, comment.post.author_id):
        recipients.append((parent.author_id, NotificationType.COMMENT_REPLY))

    commenter = comment.author
    post_title = post_preview(comment.post.content) if comment.post else ''
    for user_id, notification_type in recipients:
        create_activity_notification(user_id, notification_type, {
            'postId': comment.post_id,
            'commentId': comment.id,
            'authorId': comment.author_id,
            'authorName': get_display_name(commenter),
            'postTitle': post_title,
            'avatarUrl': commenter.image if commenter else None,
        })
        send_notification_email(user_id, notification_type, {
            'postId': comment.post_id,
            'authorId': comment.author_id,
            'postTitle': post_title,
            'commentContent': comment.content,
        })
    return [user_id for user_id, _ in recipients]


def send_mention_notifications(content, author_id, post_id, post_title):
    """Email every user @mentioned in ``content``. Returns the number sent."""
    handles = extract_mentions(content)
    if not handles:
        return 0

    sent = 0
    for user_id in get_user_ids_by_names(handles):
        if user_id == author_id:
            continue
        try:
            if send_notification_email(user_id, NotificationType.MENTION, {
                'authorId': author_id,
                'postId': post_id,
                'postTitle': post_title,
                'commentContent': content,
            }):
                sent += 1
        except Exception as e:
            logger.warning(f"[EMAIL] Mention email to {user_id} failed: {e}")
    return sent


def dispatch_mention_notifications(content, author_id, post_id):
    """Ask the notification endpoint to handle @mentions in a new post.

    Runs as a background job; skipped when the content mentions nobody.
    """
    if not extract_mentions(content):
        return None

    url = f"{current_app.config['INTERNAL_API_URL'].rstrip('/')}/api/notifications/email"
    response = requests.put(url, json={
        'content': content,
        'authorId': author_id,
        'postId': post_id,
        'postTitle': post_preview(content),
    }, timeout=MENTION_DISPATCH_TIMEOUT)
    response.raise_for_status()
    return response.json()
