"""Post creation: POST /api/posts."""

import logging
import re

from flask import jsonify

from app import db
from app.constants import (
    CLIENT_SUGGESTION_CONFIDENCE,
    ENGLISH,
    SUPPORTED_LANGUAGES,
    filename_from_url,
    is_english,
    mime_type_for,
)
from app.errors import AuthenticationError, NotFoundError, ValidationError, error_response
from app.models import Attachment, Category, Post, User
from app.routes.posts import posts_bp
from app.routes.posts.helpers import (
    MAX_TAGS,
    NO_CACHE_HEADERS,
    content_error,
    get_comment_counts,
    in_savepoint,
    is_category_id,
    parse_bool,
    parse_string_list,
    request_data,
    transform_post,
)
from app.services import ai_classifier
from app.services.badges import check_and_award_badges
from app.services.categorization import (
    build_category_ids,
    get_category_ids_by_names,
    get_category_names,
    increment_post_count,
    secondary_category_names,
)
from app.services.notifications import dispatch_mention_notifications
from app.services.post_refinement import refine_post_categories
from app.services.response_cache import invalidate_posts_cache
from app.services.tasks import get_task_queue
from app.utils import token_required
from app.utils.diagnostics import Diagnostics

logger = logging.getLogger(__name__)

MAX_AI_SUGGESTIONS = 5

IMAGE_FIELD = re.compile(r'^image(\d+)_url$')


def parse_images(data):
    """Collect image references as ``[{'url', 'filename', 'size'}]``.

    Form uploads send ``image{N}_url`` with an optional ``image{N}_name``;
    JSON bodies may send ``images`` as a list of URLs. Any other shape of
    ``images`` is ignored.
    """
    images = []
    numbered = sorted(
        (int(match.group(1)), key)
        for key in data
        for match in [IMAGE_FIELD.match(key)] if match
    )
    for index, key in numbered:
        url = (data.get(key) or '').strip()
        if not url:
            continue
        images.append({
            'url': url,
            'filename': data.get(f'image{index}_name') or filename_from_url(url),
            'size': data.get(f'image{index}_size'),
        })

    listed = data.get('images')
    if not isinstance(listed, list):
        return images
    for item in listed:
        if isinstance(item, str) and item.strip():
            images.append({'url': item.strip(), 'filename': filename_from_url(item.strip()), 'size': None})
        elif isinstance(item, dict) and item.get('url'):
            images.append({
                'url': item['url'],
                'filename': item.get('name') or filename_from_url(item['url']),
                'size': item.get('size'),
            })
    return images


def validate_create_payload(data):
    """Validate a create-post payload. Raises ValidationError with per-field details."""
    errors = {}

    content = data.get('content')
    content_problem = content_error(content)
    if content_problem:
        errors['content'] = content_problem

    category_id = data.get('categoryId')
    if not category_id:
        errors['categoryId'] = 'Category is required'
    elif not is_category_id(category_id):
        errors['categoryId'] = 'Invalid category id'

    tags = parse_string_list(data.get('tags'), 'tags', MAX_TAGS, errors)
    ai_suggestions = parse_string_list(
        data.get('aiSuggestedCategories'), 'aiSuggestedCategories', MAX_AI_SUGGESTIONS, errors
    )

    language = data.get('originalLanguage') or ENGLISH
    if language not in SUPPORTED_LANGUAGES:
        errors['originalLanguage'] = 'Unsupported language'

    if errors:
        raise ValidationError('Invalid post data', details=errors)

    return {
        'content': content,
        'category_id': category_id,
        'is_anonymous': parse_bool(data.get('isAnonymous')),
        'tags': tags,
        'original_language': language,
        'ai_suggestions': ai_suggestions,
        'images': parse_images(data),
    }


def suggest_categories(content, language, primary_name, client_suggestions):
    """Immediate category suggestions for a new post.

    Non-English content is classified right away, falling back to the
    keyword table when the AI is unavailable. English posts trust the
    client's AI suggestions.
    """
    if not is_english(language):
        category_names = get_category_names()
        try:
            classification = ai_classifier.classify_post_strict(content, category_names)
        except ai_classifier.ClassificationError as e:
            logger.warning(f"[POSTS] AI classification failed, using keyword fallback: {e}")
            return ai_classifier.fallback_classification(content, primary_name, category_names)
        if not classification.categories:
            classification.categories = [primary_name]
        return classification

    if client_suggestions:
        return ai_classifier.Classification(
            category=client_suggestions[0],
            categories=list(client_suggestions),
            confidence=CLIENT_SUGGESTION_CONFIDENCE,
            original_language=language,
            translated_content=content,
        )
    return ai_classifier.Classification(
        category=primary_name,
        categories=[primary_name],
        confidence=None,
        original_language=language,
        translated_content=content,
    )


def _add_attachment(post_id, image):
    try:
        size = int(image.get('size') or 0)
    except (TypeError, ValueError):
        size = 0
    attachment = Attachment(
        post_id=post_id,
        url=image['url'],
        filename=image['filename'],
        mime_type=mime_type_for(image['filename']),
        size=size,
    )
    db.session.add(attachment)
    return attachment


def _publish_follow_up_jobs(post, author_id, has_client_ai_categories):
    queue = get_task_queue()
    queue.publish('badge check', check_and_award_badges, author_id)
    queue.publish('mention dispatch', dispatch_mention_notifications, post.content, author_id, post.id)
    queue.publish(
        'AI refinement', refine_post_categories, post.id,
        has_client_ai_categories=has_client_ai_categories
    )


@posts_bp.route('', methods=['POST'])
@token_required
def create_post(current_user_id):
    """Create a post.

    Accepts multipart form data or JSON with:
        - content (required, 1-10000 chars)
        - categoryId (required)
        - isAnonymous, tags, originalLanguage, aiSuggestedCategories
        - image{N}_url / image{N}_name fields, or images: [url, ...]
    """
    try:
        user = db.session.get(User, current_user_id)
        if not user:
            raise AuthenticationError('User not found')

        payload = validate_create_payload(request_data())

        category = db.session.get(Category, payload['category_id'])
        if not category:
            raise NotFoundError('Category not found', code='CATEGORY_NOT_FOUND')

        content = payload['content']
        language = payload['original_language']
        client_suggestions = payload['ai_suggestions']
        classification = suggest_categories(content, language, category.name, client_suggestions)

        category_ids = build_category_ids(
            category.id,
            get_category_ids_by_names(classification.categories),
            get_category_ids_by_names(client_suggestions),
        )
        ai_primary = classification.categories[0]

        post = Post(
            author_id=user.id,
            content=content,
            category_id=category.id,
            category_ids=category_ids,
            is_anonymous=payload['is_anonymous'],
            tags=payload['tags'],
            ai_suggested_category=ai_primary,
            ai_categories=secondary_category_names(classification.categories, ai_primary),
            ai_confidence=classification.confidence,
            original_language=language,
            translated_content=classification.translated_content or content,
        )
        db.session.add(post)
        db.session.flush()

        diagnostics = Diagnostics(f'[POSTS] post {post.id}')
        for category_id in category_ids:
            diagnostics.attempt(f'increment {category_id}', in_savepoint, increment_post_count, category_id)
        for image in payload['images']:
            diagnostics.attempt(f"attachment {image['filename']}", in_savepoint, _add_attachment, post.id, image)

        db.session.commit()
        post_id = post.id

        # Re-read so the response reflects exactly what was stored
        db.session.expire_all()
        post = db.session.get(Post, post_id)
        result = transform_post(
            post,
            comment_count=get_comment_counts([post_id])[post_id],
            attachments=post.attachments,
        )

        if diagnostics.failures:
            logger.warning(f"[POSTS] Post {post_id} created with failed side effects: {diagnostics.to_list()}")
        logger.info(
            f"[POSTS] Created post {post_id} by {user.id} in {category_ids} "
            f"({len(result['images'])} images, language {language})"
        )

        response = jsonify(result)
        response.status_code = 201
        response.headers['X-New-Post-Created'] = 'true'
        response.headers['X-Post-Id'] = post_id
        response.headers['X-Post-Type'] = 'image' if result['images'] else 'text'
        for header, value in NO_CACHE_HEADERS.items():
            response.headers[header] = value

        _publish_follow_up_jobs(post, user.id, bool(client_suggestions))
        invalidate_posts_cache()
        return response

    except Exception as e:
        db.session.rollback()
        return error_response(e)
