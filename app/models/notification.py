"""Notification model for user notifications."""

import json
from app import db
from app.models.user import generate_uuid
from datetime import datetime


class Notification(db.Model):
    """Model for storing user notifications."""

    __tablename__ = 'notifications'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False)  # e.g., 'POST_LIKE', 'MENTION'
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)

    # Dynamic data (postId, authorName, postTitle, ...) as a JSON string
    data = db.Column(db.Text, nullable=True)

    is_read = db.Column(db.Boolean, default=False)
    read_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('notifications', lazy='dynamic'))

    def __repr__(self):
        return f'<Notification {self.id} for User {self.user_id}: {self.type}>'

    def set_data(self, data_dict: dict):
        """Set the data field from a dictionary."""
        self.data = json.dumps(data_dict) if data_dict else None

    def get_data(self) -> dict:
        """Get the data field as a dictionary."""
        if self.data:
            try:
                return json.loads(self.data)
            except (json.JSONDecodeError, TypeError):
                return {}
        return {}

    def to_dict(self):
        """Convert notification to dictionary."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'data': self.get_data(),
            'is_read': self.is_read,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


# Notification type constants
class NotificationType:
    POST_LIKE = 'POST_LIKE'
    POST_COMMENT = 'POST_COMMENT'
    MENTION = 'MENTION'
    COMMENT_REPLY = 'COMMENT_REPLY'
    SYSTEM = 'SYSTEM'

    ALL = (POST_LIKE, POST_COMMENT, MENTION, COMMENT_REPLY, SYSTEM)
