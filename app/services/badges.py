"""Badge awarding and rank presentation."""

from datetime import datetime
import logging

from app import db
from app.models import Badge, BadgeLevel, Comment, Post, User, UserBadge, Vote, VoteType, Attachment

logger = logging.getLogger(__name__)

VERIFIED_BADGE_ID = 'verified-expert'
VERIFIED_LEVELS = {BadgeLevel.PLATINUM, BadgeLevel.GOLD}

# Criteria keys understood by check_and_award_badges
CRITERIA_KEYS = ('postsCount', 'commentsCount', 'upvotesReceived', 'imagePostsCount', 'daysAsActiveMember')


def _badge_of(item):
    """Accept either a Badge or a UserBadge."""
    return getattr(item, 'badge', None) or item


def is_verified(badges) -> bool:
    """A user is verified when they hold the verified-expert badge or any GOLD/PLATINUM badge."""
    for item in badges or []:
        badge = _badge_of(item)
        if badge.id == VERIFIED_BADGE_ID or badge.level in VERIFIED_LEVELS:
            return True
    return False


def rank_for(badges):
    """Pick the highest-priority badge (PLATINUM > GOLD > SILVER > BRONZE).

    Ties go to the first badge encountered. Returns ``(name, icon)`` or
    ``(None, None)`` when there are no badges.
    """
    best = None
    best_priority = len(BadgeLevel.PRIORITY)
    for item in badges or []:
        badge = _badge_of(item)
        try:
            priority = BadgeLevel.PRIORITY.index(badge.level)
        except ValueError:
            continue
        if priority < best_priority:
            best, best_priority = badge, priority
    if best is None:
        return None, None
    return best.name, best.icon


def get_user_stats(user_id):
    """Activity counters used for badge eligibility."""
    user = db.session.get(User, user_id)
    if not user:
        raise LookupError('User not found')

    post_ids = db.session.query(Post.id).filter(Post.author_id == user_id)

    posts_count = Post.query.filter_by(author_id=user_id).count()
    comments_count = Comment.query.filter_by(author_id=user_id).count()
    post_upvotes = Vote.query.filter(
        Vote.type == VoteType.UP,
        Vote.post_id.in_(post_ids)
    ).count()
    comment_upvotes = db.session.query(
        db.func.coalesce(db.func.sum(Comment.upvotes), 0)
    ).filter(Comment.author_id == user_id).scalar()
    image_posts = db.session.query(db.func.count(db.distinct(Attachment.post_id))).filter(
        Attachment.post_id.in_(post_ids)
    ).scalar()

    return {
        'postsCount': posts_count,
        'commentsCount': comments_count,
        'upvotesReceived': post_upvotes + int(comment_upvotes or 0),
        'imagePostsCount': image_posts or 0,
        'daysAsActiveMember': (datetime.utcnow() - user.created_at).days,
    }


def is_eligible(criteria, stats) -> bool:
    """Any single satisfied threshold qualifies; manually awarded badges never do."""
    criteria = criteria or {}
    if criteria.get('manuallyAwarded'):
        return False
    return any(
        criteria.get(key) and stats.get(key, 0) >= criteria[key]
        for key in CRITERIA_KEYS
    )


def check_and_award_badges(user_id):
    """Award every active badge the user now qualifies for.

    Returns a dict with the stats used and the list of awarded badge ids.
    """
    logger.info(f"[BADGES] Starting badge check for user {user_id}")
    stats = get_user_stats(user_id)

    owned = {ub.badge_id for ub in UserBadge.query.filter_by(user_id=user_id).all()}
    awarded = []
    for badge in Badge.query.filter_by(is_active=True).order_by(Badge.type, Badge.level).all():
        if badge.id in owned:
            continue
        if is_eligible(badge.criteria, stats):
            db.session.add(UserBadge(user_id=user_id, badge_id=badge.id, awarded_by='system'))
            awarded.append(badge.id)
            logger.info(f"[BADGES] Awarded {badge.name} to {user_id}")

    if awarded:
        db.session.commit()

    logger.info(f"[BADGES] Badge check completed. Awarded {len(awarded)} new badges")
    return {'userStats': stats, 'awardedBadges': awarded}
