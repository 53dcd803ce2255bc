"""Badge catalogue and user badge awards."""
from datetime import datetime
from app import db
from app.models.user import generate_uuid


class BadgeLevel:
    BRONZE = 'BRONZE'
    SILVER = 'SILVER'
    GOLD = 'GOLD'
    PLATINUM = 'PLATINUM'

    # Highest priority first
    PRIORITY = (PLATINUM, GOLD, SILVER, BRONZE)


class Badge(db.Model):
    """Badge definition. ``criteria`` holds thresholds such as ``{"postsCount": 10}``."""

    __tablename__ = 'badges'

    id = db.Column(db.String(64), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(80), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    icon = db.Column(db.String(40), nullable=True)
    color = db.Column(db.String(20), nullable=True)
    type = db.Column(db.String(40), nullable=False, default='ACHIEVEMENT')
    level = db.Column(db.String(20), nullable=False, default=BadgeLevel.BRONZE)
    criteria = db.Column(db.JSON, nullable=False, default=dict)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'icon': self.icon,
            'color': self.color,
            'type': self.type,
            'level': self.level,
        }


class UserBadge(db.Model):
    """A badge earned by a user."""

    __tablename__ = 'user_badges'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    badge_id = db.Column(db.String(64), db.ForeignKey('badges.id'), nullable=False)
    earned_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    awarded_by = db.Column(db.String(36), nullable=True)

    badge = db.relationship('Badge', lazy='joined')

    __table_args__ = (
        db.UniqueConstraint('user_id', 'badge_id', name='unique_user_badge'),
    )
