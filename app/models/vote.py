"""Vote model: one row per (user, post)."""
from datetime import datetime
from app import db
from app.models.user import generate_uuid


class VoteType:
    UP = 'UP'
    DOWN = 'DOWN'

    ALL = (UP, DOWN)


class Vote(db.Model):
    """A user's up or down vote on a post."""

    __tablename__ = 'votes'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    post_id = db.Column(db.String(36), db.ForeignKey('posts.id'), nullable=False, index=True)
    type = db.Column(db.String(4), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'post_id', name='unique_user_post_vote'),
    )

    def __repr__(self):
        return f'<Vote {self.type} by {self.user_id} on {self.post_id}>'
