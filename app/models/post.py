"""Post and attachment models."""
from datetime import datetime
from app import db
from app.models.user import generate_uuid

# Maximum number of categories a post may belong to (primary included)
MAX_POST_CATEGORIES = 4


class Post(db.Model):
    """Forum post.

    ``category_ids`` always starts with ``category_id`` (the primary category),
    holds no duplicates and never exceeds ``MAX_POST_CATEGORIES`` entries.
    """

    __tablename__ = 'posts'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    author_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    category_id = db.Column(db.String(64), db.ForeignKey('categories.id'), nullable=False, index=True)
    category_ids = db.Column(db.JSON, nullable=False, default=list)
    is_anonymous = db.Column(db.Boolean, default=False, nullable=False)
    is_pinned = db.Column(db.Boolean, default=False, nullable=False)
    tags = db.Column(db.JSON, nullable=False, default=list)

    # AI classification results
    ai_suggested_category = db.Column(db.String(80), nullable=True)
    ai_categories = db.Column(db.JSON, nullable=False, default=list)
    ai_confidence = db.Column(db.Float, nullable=True)
    original_language = db.Column(db.String(40), default='English', nullable=False)
    translated_content = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = db.relationship('Category', lazy='joined')
    attachments = db.relationship(
        'Attachment', backref='post', lazy=True,
        order_by='Attachment.created_at', cascade='all, delete-orphan'
    )
    comments = db.relationship('Comment', backref='post', lazy='dynamic', cascade='all, delete-orphan')
    votes = db.relationship('Vote', backref='post', lazy='dynamic', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Post {self.id}>'


class Attachment(db.Model):
    """Uploaded file reference attached to a post."""

    __tablename__ = 'attachments'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    post_id = db.Column(db.String(36), db.ForeignKey('posts.id'), nullable=False, index=True)
    url = db.Column(db.String(1000), nullable=False)
    filename = db.Column(db.String(255), nullable=False)
    mime_type = db.Column(db.String(100), nullable=False, default='application/octet-stream')
    size = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'url': self.url,
            'filename': self.filename,
            'mimeType': self.mime_type,
            'size': self.size,
        }
