"""Comment model."""
from datetime import datetime
from app import db
from app.models.user import generate_uuid


class Comment(db.Model):
    """Comment on a post. Vote tallies are denormalized onto the row."""

    __tablename__ = 'comments'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    post_id = db.Column(db.String(36), db.ForeignKey('posts.id'), nullable=False, index=True)
    author_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    parent_id = db.Column(db.String(36), db.ForeignKey('comments.id'), nullable=True, index=True)
    content = db.Column(db.Text, nullable=False)
    upvotes = db.Column(db.Integer, default=0, nullable=False)
    downvotes = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    author = db.relationship('User', backref=db.backref('comments', lazy=True))
    replies = db.relationship(
        'Comment', backref=db.backref('parent', remote_side=[id]),
        lazy=True, cascade='all, delete-orphan'
    )

    def to_dict(self):
        return {
            'id': self.id,
            'postId': self.post_id,
            'parentId': self.parent_id,
            'content': self.content,
            'author': self.author.full_name if self.author else 'Unknown',
            'authorId': self.author_id,
            'authorImage': self.author.image if self.author else None,
            'upvotes': self.upvotes,
            'downvotes': self.downvotes,
            'createdAt': self.created_at.isoformat(),
        }

    @property
    def activity(self):
        return (self.upvotes or 0) + (self.downvotes or 0)

    def __repr__(self):
        return f'<Comment {self.id} on {self.post_id}>'
