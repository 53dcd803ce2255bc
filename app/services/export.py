"""Account data export as a ZIP archive of plain-text files."""

from datetime import datetime
import io
import logging
import re
import zipfile

from app.models import Attachment, Comment, Post
from app.constants import filename_from_url
from app.utils.user_helpers import get_display_name

logger = logging.getLogger(__name__)

RULE = '=' * 40
SEPARATOR = '-' * 40


def _or_na(value):
    return value if value not in (None, '') else 'N/A'


def _enabled(flag):
    return 'Enabled' if flag else 'Disabled'


def _fmt(dt):
    return dt.strftime('%Y-%m-%d %H:%M:%S') if dt else 'N/A'


def render_profile(user, post_count, comment_count, exported_at):
    location = f"{user.city or ''} {user.country or ''}".strip() or 'N/A'
    return '\n'.join([
        'ARCHALLEY FORUM - USER DATA EXPORT',
        RULE,
        f'Export Date: {_fmt(exported_at)}',
        '',
        'PROFILE INFORMATION',
        RULE,
        f'Full Name: {get_display_name(user)}',
        f'Username: {user.name}',
        f'Email: {user.email}',
        f'Headline: {_or_na(user.headline)}',
        f'Bio: {_or_na(user.bio)}',
        f'Company: {_or_na(user.company)}',
        f'Profession: {_or_na(user.profession)}',
        f'Location: {location}',
        f'Member Since: {_fmt(user.created_at)}',
        f'Last Active: {_fmt(user.last_active_at)}',
        '',
        'NOTIFICATION SETTINGS',
        RULE,
        f'Email Notifications: {_enabled(user.email_notifications)}',
        f'Comment Notifications: {_enabled(user.notify_on_comment)}',
        f'Like Notifications: {_enabled(user.notify_on_like)}',
        f'Mention Notifications: {_enabled(user.notify_on_mention)}',
        '',
        'ACTIVITY SUMMARY',
        RULE,
        f'Total Posts: {post_count}',
        f'Total Comments: {comment_count}',
        '',
    ])


def render_posts(posts, comment_counts, images):
    lines = ['ARCHALLEY FORUM - POSTS DATA', RULE, f'Total Posts: {len(posts)}', '']
    for index, post in enumerate(posts, start=1):
        urls = images.get(post.id, [])
        category_ids = post.category_ids or []
        lines.extend([
            f'POST {index}',
            f'ID: {post.id}',
            f"Category: {post.category.name if post.category else 'Uncategorized'}",
            f"Multiple Categories: {f'Yes ({len(category_ids)} categories)' if len(category_ids) > 1 else 'No'}",
            f'Created: {_fmt(post.created_at)}',
            f'Updated: {_fmt(post.updated_at)}',
            f'Comments: {comment_counts.get(post.id, 0)}',
            f'Images: {len(urls)}',
            f"Image URLs: {', '.join(urls)}" if urls else 'No images',
            '',
            'Content:',
            post.content or 'No content',
            '',
            SEPARATOR,
            '',
        ])
    return '\n'.join(lines)


def render_comments(comments):
    lines = ['ARCHALLEY FORUM - COMMENTS DATA', RULE, f'Total Comments: {len(comments)}', '']
    for index, comment in enumerate(comments, start=1):
        post = comment.post
        lines.extend([
            f'COMMENT {index}',
            f'ID: {comment.id}',
            f"On Post: {(post.content or '')[:50] if post else 'Unknown'}...",
            f"Post ID: {post.id if post else 'Unknown'}",
            f'Created: {_fmt(comment.created_at)}',
            '',
            'Content:',
            comment.content or 'No content',
            '',
            SEPARATOR,
            '',
        ])
    return '\n'.join(lines)


def render_readme(user, post_count, comment_count, image_count, exported_at):
    return '\n'.join([
        'ARCHALLEY FORUM - EXPORT SUMMARY',
        RULE,
        f'Export Date: {_fmt(exported_at)}',
        f'User: {user.name}',
        f'Email: {user.email}',
        '',
        'CONTENTS OF THIS ARCHIVE',
        RULE,
        '- profile_data.txt: profile information',
        f'- posts_data.txt: all posts ({post_count} posts)',
        f'- comments_data.txt: all comments ({comment_count} comments)',
        f'- images/: image URLs ({image_count} image references)',
        '',
        'All data is exported as plain text. Timestamps are UTC.',
        '',
    ])


def export_filename(user, exported_at):
    safe_name = re.sub(r'[^a-zA-Z0-9]', '_', user.name or 'user')
    return f"archalley_forum_export_{safe_name}_{exported_at.strftime('%Y-%m-%d')}.zip"


def build_user_export(user, exported_at=None):
    """Build the export archive for ``user``. Returns ``(zip_bytes, filename)``."""
    exported_at = exported_at or datetime.utcnow()

    posts = Post.query.filter_by(author_id=user.id).order_by(Post.created_at.desc()).all()
    comments = Comment.query.filter_by(author_id=user.id).order_by(Comment.created_at.desc()).all()
    post_ids = [p.id for p in posts]

    images = {}
    comment_counts = {}
    if post_ids:
        for attachment in Attachment.query.filter(Attachment.post_id.in_(post_ids)).all():
            images.setdefault(attachment.post_id, []).append(attachment.url)
        for post in posts:
            comment_counts[post.id] = post.comments.count()

    buffer = io.BytesIO()
    image_count = 0
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
        archive.writestr('profile_data.txt', render_profile(user, len(posts), len(comments), exported_at))
        archive.writestr('posts_data.txt', render_posts(posts, comment_counts, images))
        archive.writestr('comments_data.txt', render_comments(comments))
        for urls in images.values():
            for url in urls:
                image_count += 1
                name = filename_from_url(url)
                if f'images/{name}.txt' in archive.namelist():
                    name = f'{image_count}_{name}'
                archive.writestr(f'images/{name}.txt', f'Image URL: {url}')
        archive.writestr('README.txt', render_readme(user, len(posts), len(comments), image_count, exported_at))

    logger.info(f"Built data export for user {user.id}: {len(posts)} posts, {len(comments)} comments")
    return buffer.getvalue(), export_filename(user, exported_at)
