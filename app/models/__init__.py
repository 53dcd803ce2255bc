"""Database models for the forum application."""

from .user import User
from .category import Category
from .post import Post, Attachment, MAX_POST_CATEGORIES
from .vote import Vote, VoteType
from .comment import Comment
from .badge import Badge, BadgeLevel, UserBadge
from .notification import Notification, NotificationType
from .translation_cache import TranslationCache

__all__ = [
    'User', 'Category', 'Post', 'Attachment', 'MAX_POST_CATEGORIES',
    'Vote', 'VoteType', 'Comment', 'Badge', 'BadgeLevel', 'UserBadge',
    'Notification', 'NotificationType', 'TranslationCache',
]
