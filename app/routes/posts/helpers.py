"""Shared helpers for post routes: validation, batch lookups and response shaping."""

from datetime import datetime
import json
import re

from flask import current_app, request
from sqlalchemy import func

from app import db
from app.models import Attachment, Comment, Vote, VoteType
from app.services.badges import is_verified, rank_for
from app.services.categorization import get_category_names_by_ids

UUID_REGEX = re.compile(r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$')
SLUG_REGEX = re.compile(r'^[a-zA-Z0-9_-]+$')

MAX_CONTENT_LENGTH = 10000
MAX_TAGS = 10

# Badges shown with the author of a post
AUTHOR_BADGE_LIMIT = 3

NO_CACHE_HEADERS = {
    'Cache-Control': 'no-cache, no-store, must-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
}


def is_uuid(value) -> bool:
    return isinstance(value, str) and bool(UUID_REGEX.match(value))


def is_category_id(value) -> bool:
    """Category ids are UUIDs or simple alphanumeric slugs."""
    return isinstance(value, str) and (is_uuid(value) or bool(SLUG_REGEX.match(value)))


def request_data():
    """JSON body or multipart/urlencoded form fields as a dict."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in ('true', '1', 'yes', 'on')


def parse_string_list(value, field, max_items, errors):
    """Accept a list or a JSON-encoded list of strings (multipart form fields)."""
    if value in (None, ''):
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            errors[field] = f'{field} must be a JSON array of strings'
            return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors[field] = f'{field} must be an array of strings'
        return []
    if len(value) > max_items:
        errors[field] = f'{field} accepts at most {max_items} items'
        return []
    return value


def content_error(content, max_length=MAX_CONTENT_LENGTH):
    """Problem with post or comment text, or None when it is acceptable."""
    if not isinstance(content, str) or not content.strip():
        return 'Content is required'
    if len(content) > max_length:
        return f'Content must be at most {max_length} characters'
    return None


def in_savepoint(func, *args, **kwargs):
    """Run ``func`` in a SAVEPOINT so its failure leaves the outer transaction intact."""
    with db.session.begin_nested():
        return func(*args, **kwargs)


def get_vote_rate_limiter():
    return current_app.extensions['vote_rate_limiter']


def time_ago(created_at, now=None):
    """Human-readable age such as '5m ago'."""
    if not created_at:
        return None
    seconds = int(((now or datetime.utcnow()) - created_at).total_seconds())
    if seconds < 60:
        return 'just now'
    if seconds < 3600:
        return f'{seconds // 60}m ago'
    if seconds < 86400:
        return f'{seconds // 3600}h ago'
    if seconds < 86400 * 30:
        return f'{seconds // 86400}d ago'
    return created_at.strftime('%b %d, %Y')


def get_vote_counts(post_ids):
    """Map post_id -> {'upvotes': n, 'downvotes': n} in a single grouped query."""
    counts = {post_id: {'upvotes': 0, 'downvotes': 0} for post_id in post_ids}
    if not post_ids:
        return counts
    rows = db.session.query(
        Vote.post_id, Vote.type, func.count(Vote.id)
    ).filter(Vote.post_id.in_(post_ids)).group_by(Vote.post_id, Vote.type).all()
    for post_id, vote_type, count in rows:
        key = 'upvotes' if vote_type == VoteType.UP else 'downvotes'
        counts[post_id][key] = count
    return counts


def get_user_votes(user_id, post_ids):
    """Map post_id -> 'UP'/'DOWN' for the viewer's own votes."""
    if not user_id or not post_ids:
        return {}
    rows = db.session.query(Vote.post_id, Vote.type).filter(
        Vote.user_id == user_id,
        Vote.post_id.in_(post_ids)
    ).all()
    return {post_id: vote_type for post_id, vote_type in rows}


def get_comment_counts(post_ids):
    counts = {post_id: 0 for post_id in post_ids}
    if not post_ids:
        return counts
    rows = db.session.query(Comment.post_id, func.count(Comment.id)).filter(
        Comment.post_id.in_(post_ids)
    ).group_by(Comment.post_id).all()
    counts.update(dict(rows))
    return counts


def get_attachments(post_ids):
    result = {post_id: [] for post_id in post_ids}
    if not post_ids:
        return result
    rows = Attachment.query.filter(Attachment.post_id.in_(post_ids)).order_by(Attachment.created_at).all()
    for attachment in rows:
        result[attachment.post_id].append(attachment)
    return result


def select_top_comment(comments):
    """Comment with the most combined up/down votes.

    Ties keep the first comment encountered, so a lone comment is always the
    top comment even with zero votes.
    """
    top = None
    for comment in comments:
        if top is None or comment.activity > top.activity:
            top = comment
    return top


def get_top_comments(post_ids):
    """Map post_id -> top comment dict (or None)."""
    result = {post_id: None for post_id in post_ids}
    if not post_ids:
        return result
    comments = Comment.query.filter(Comment.post_id.in_(post_ids)).order_by(Comment.created_at.asc()).all()
    by_post = {}
    for comment in comments:
        by_post.setdefault(comment.post_id, []).append(comment)
    for post_id, post_comments in by_post.items():
        top = select_top_comment(post_comments)
        result[post_id] = {
            'id': top.id,
            'content': top.content,
            'author': top.author.full_name if top.author else 'Unknown',
            'authorId': top.author_id,
            'upvotes': top.upvotes,
            'downvotes': top.downvotes,
            'isTopComment': True,
            'createdAt': top.created_at.isoformat(),
        }
    return result


def build_author(post):
    """Author block; collapses to 'Anonymous' for anonymous posts."""
    if post.is_anonymous or not post.author:
        return {
            'id': None,
            'name': 'Anonymous',
            'image': None,
            'isVerified': False,
            'rank': None,
            'rankIcon': None,
            'badges': [],
        }

    author = post.author
    # Most recent first; rank and verification consider only the badges shown
    user_badges = list(author.badges or [])[:AUTHOR_BADGE_LIMIT]
    rank_name, rank_icon = rank_for(user_badges)
    return {
        'id': author.id,
        'name': author.full_name,
        'image': author.image,
        'isVerified': is_verified(user_badges),
        'rank': rank_name,
        'rankIcon': rank_icon,
        'badges': [ub.badge.to_dict() for ub in user_badges],
    }


def transform_post(post, votes=None, user_vote=None, comment_count=0, attachments=None,
                   category_names=None, top_comment=None):
    """Shape a Post for the client."""
    votes = votes or {'upvotes': 0, 'downvotes': 0}
    attachments = post.attachments if attachments is None else attachments
    category_ids = list(post.category_ids or [post.category_id])
    if category_names is None:
        category_names = get_category_names_by_ids(category_ids)

    return {
        'id': post.id,
        'content': post.content,
        'author': build_author(post),
        'category': post.category.name if post.category else None,
        'categories': [category_names[i] for i in category_ids if i in category_names],
        'categoryIds': category_ids,
        'isAnonymous': post.is_anonymous,
        'isPinned': post.is_pinned,
        'tags': post.tags or [],
        'upvotes': votes['upvotes'],
        'downvotes': votes['downvotes'],
        'userVote': user_vote.lower() if user_vote else None,
        'comments': comment_count,
        'timeAgo': time_ago(post.created_at),
        'images': [a.url for a in attachments],
        'createdAt': post.created_at.isoformat(),
        'updatedAt': post.updated_at.isoformat(),
        'aiSuggestedCategory': post.ai_suggested_category,
        'aiCategories': post.ai_categories or [],
        'aiConfidence': post.ai_confidence,
        'originalLanguage': post.original_language,
        'translatedContent': post.translated_content,
        'topComment': top_comment,
    }
