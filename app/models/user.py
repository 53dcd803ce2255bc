"""User model for authentication and community profiles."""

from datetime import datetime
import uuid
from werkzeug.security import generate_password_hash, check_password_hash
from app import db


def generate_uuid():
    return str(uuid.uuid4())


class User(db.Model):
    """Forum member."""

    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    # Public handle, also used for @mentions
    name = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(80), nullable=True)
    last_name = db.Column(db.String(80), nullable=True)
    image = db.Column(db.String(500), nullable=True)
    headline = db.Column(db.String(200), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    company = db.Column(db.String(120), nullable=True)
    profession = db.Column(db.String(120), nullable=True)
    city = db.Column(db.String(80), nullable=True)
    country = db.Column(db.String(80), nullable=True)
    email_verified = db.Column(db.Boolean, default=False, nullable=False)

    # Email notification preferences
    email_notifications = db.Column(db.Boolean, default=True, nullable=False)
    notify_on_like = db.Column(db.Boolean, default=True, nullable=False)
    notify_on_mention = db.Column(db.Boolean, default=True, nullable=False)
    notify_on_comment = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_active_at = db.Column(db.DateTime, nullable=True)

    posts = db.relationship('Post', backref='author', lazy=True)
    badges = db.relationship(
        'UserBadge', backref='user', lazy=True,
        order_by='UserBadge.earned_at.desc()',
        cascade='all, delete-orphan'
    )

    def set_password(self, password):
        """Hash and set the user password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if the provided password matches the hash."""
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.name

    def to_dict(self):
        """Convert user to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'image': self.image,
            'headline': self.headline,
            'bio': self.bio,
            'company': self.company,
            'profession': self.profession,
            'city': self.city,
            'country': self.country,
            'created_at': self.created_at.isoformat(),
        }

    def __repr__(self):
        return f'<User {self.name}>'
