"""Deferred AI refinement of a newly created post.

Runs as a background job after the create-post response has been built:
translates non-English content, re-runs classification when the client did
not send AI categories, and stores any newly discovered categories.
"""
import logging

from app import db
from app.constants import is_english
from app.models import Post
from app.services import ai_classifier
from app.services.categorization import (
    build_category_ids,
    get_category_ids_by_names,
    get_category_names,
    get_category_names_by_ids,
    increment_post_count,
    secondary_category_names,
)
from app.services.response_cache import invalidate_posts_cache
from app.utils.diagnostics import Diagnostics

logger = logging.getLogger(__name__)


def category_set_changed(old_ids, new_ids) -> bool:
    """Compare category id lists as sets of strings, ignoring order."""
    return sorted(str(i) for i in old_ids or []) != sorted(str(i) for i in new_ids or [])


def refine_post_categories(post_id, has_client_ai_categories=False):
    """Refine a post's translation and categories. Never raises.

    Returns a summary dict, or None when the post no longer exists or the
    refinement failed.
    """
    try:
        return _refine(post_id, has_client_ai_categories)
    except Exception as e:
        logger.error(f"[AI] Background refinement failed for post {post_id}: {e}", exc_info=True)
        db.session.rollback()
        return None


def _refine(post_id, has_client_ai_categories):
    post = db.session.get(Post, post_id)
    if not post:
        logger.warning(f"[AI] Post {post_id} vanished before refinement")
        return None

    translated_content = post.translated_content
    if not is_english(post.original_language):
        translation = ai_classifier.translate_to_english(post.content)
        # An unavailable translator echoes the original text back
        if translation.translated_text and translation.translated_text != post.content:
            translated_content = translation.translated_text

    existing_ids = list(post.category_ids or [post.category_id])
    new_ids = existing_ids
    classification = None

    if not has_client_ai_categories:
        try:
            classification = ai_classifier.classify_post_strict(
                translated_content or post.content, get_category_names()
            )
        except ai_classifier.ClassificationError as e:
            logger.warning(f"[AI] Reclassification skipped for post {post_id}: {e}")
        else:
            discovered = get_category_ids_by_names(classification.categories)
            new_ids = build_category_ids(post.category_id, existing_ids, discovered)

    categories_changed = category_set_changed(existing_ids, new_ids)
    translation_changed = translated_content != post.translated_content

    if not categories_changed and not translation_changed:
        logger.info(f"[AI] No refinement needed for post {post_id}")
        return {'postId': post_id, 'updated': False, 'categoryIds': existing_ids}

    diagnostics = Diagnostics(f'[AI] post {post_id}')

    if categories_changed:
        post.category_ids = new_ids
        if classification is not None:
            names = get_category_names_by_ids(new_ids)
            primary_name = post.category.name if post.category else None
            post.ai_categories = secondary_category_names(
                [names[i] for i in new_ids if i in names], primary_name
            )
            post.ai_confidence = classification.confidence
        for category_id in new_ids:
            if category_id not in existing_ids:
                diagnostics.attempt(f'increment {category_id}', increment_post_count, category_id)

    if translation_changed:
        post.translated_content = translated_content

    db.session.commit()
    invalidate_posts_cache()
    logger.info(f"[AI] Refined post {post_id}: categories={new_ids}")
    return {
        'postId': post_id,
        'updated': True,
        'categoryIds': new_ids,
        'failures': diagnostics.to_list(),
    }
