"""Category model for forum post classification."""
from datetime import datetime
from app import db
from app.models.user import generate_uuid


class Category(db.Model):
    """Post category with a best-effort running post count."""

    __tablename__ = 'categories'

    id = db.Column(db.String(64), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(80), unique=True, nullable=False)
    slug = db.Column(db.String(80), unique=True, nullable=False)
    color = db.Column(db.String(20), nullable=True)
    post_count = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'color': self.color,
            'postCount': self.post_count,
        }

    def __repr__(self):
        return f'<Category {self.name}>'
