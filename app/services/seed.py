"""Reference data: default categories and the badge catalogue."""

import logging
import re

from app import db
from app.constants import LEGACY_CATEGORIES
from app.models import Badge, BadgeLevel, Category

logger = logging.getLogger(__name__)

CATEGORY_COLORS = {
    'Business': '#3b82f6',
    'Design': '#ec4899',
    'Career': '#10b981',
    'Construction': '#f97316',
    'Academic': '#8b5cf6',
    'Informative': '#06b6d4',
    'Other': '#6b7280',
}

BADGES = [
    {
        'id': 'first-post', 'name': 'First Post', 'icon': '✍️', 'level': BadgeLevel.BRONZE,
        'type': 'ACHIEVEMENT', 'description': 'Published a first post', 'criteria': {'postsCount': 1},
    },
    {
        'id': 'visual-storyteller', 'name': 'Visual Storyteller', 'icon': '📷', 'level': BadgeLevel.BRONZE,
        'type': 'ACHIEVEMENT', 'description': 'Shared 5 posts with images', 'criteria': {'imagePostsCount': 5},
    },
    {
        'id': 'active-contributor', 'name': 'Active Contributor', 'icon': '🔥', 'level': BadgeLevel.SILVER,
        'type': 'ACHIEVEMENT', 'description': 'Published 10 posts', 'criteria': {'postsCount': 10},
    },
    {
        'id': 'conversation-starter', 'name': 'Conversation Starter', 'icon': '💬', 'level': BadgeLevel.SILVER,
        'type': 'ENGAGEMENT', 'description': 'Wrote 50 comments', 'criteria': {'commentsCount': 50},
    },
    {
        'id': 'community-favorite', 'name': 'Community Favorite', 'icon': '⭐', 'level': BadgeLevel.GOLD,
        'type': 'ENGAGEMENT', 'description': 'Received 100 upvotes', 'criteria': {'upvotesReceived': 100},
    },
    {
        'id': 'veteran', 'name': 'Veteran', 'icon': '🏛️', 'level': BadgeLevel.PLATINUM,
        'type': 'TENURE', 'description': 'Member for a year', 'criteria': {'daysAsActiveMember': 365},
    },
    {
        'id': 'verified-expert', 'name': 'Verified Expert', 'icon': '✔️', 'level': BadgeLevel.GOLD,
        'type': 'SPECIAL', 'description': 'Verified industry professional', 'criteria': {'manuallyAwarded': True},
    },
]


def slugify(name):
    return re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')


def seed_categories(names=None):
    """Create missing categories. Returns the number created."""
    existing = {name.lower() for (name,) in db.session.query(Category.name).all()}
    created = 0
    for name in names or LEGACY_CATEGORIES:
        if name.lower() in existing:
            continue
        db.session.add(Category(name=name, slug=slugify(name), color=CATEGORY_COLORS.get(name)))
        created += 1
    db.session.commit()
    logger.info(f"Seeded {created} categories")
    return created


def seed_badges(badges=None):
    """Create missing badges. Returns the number created."""
    existing = {badge_id for (badge_id,) in db.session.query(Badge.id).all()}
    created = 0
    for definition in badges or BADGES:
        if definition['id'] in existing:
            continue
        db.session.add(Badge(**definition))
        created += 1
    db.session.commit()
    logger.info(f"Seeded {created} badges")
    return created
