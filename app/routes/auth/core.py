"""Core authentication routes: registration and login."""

import logging
import re
from datetime import datetime

from flask import request, jsonify
from app import db, limiter
from app.errors import AuthenticationError, ConflictError, ValidationError, error_response
from app.models import User
from app.routes.auth import auth_bp
from app.utils import create_access_token

logger = logging.getLogger(__name__)

# Email validation regex
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# Handle validation: 3-30 chars, alphanumeric + underscores (used for @mentions)
NAME_REGEX = re.compile(r'^[a-zA-Z0-9_]{3,30}$')


def _validate_registration(data):
    """Return a dict of field errors (empty when valid)."""
    errors = {}
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not NAME_REGEX.match(name):
        errors['name'] = 'Name must be 3-30 characters and contain only letters, numbers, and underscores'
    if not EMAIL_REGEX.match(email) or len(email) > 254:
        errors['email'] = 'Invalid email format'
    if len(password) < 6:
        errors['password'] = 'Password must be at least 6 characters'
    elif len(password) > 128:
        errors['password'] = 'Password must be less than 128 characters'

    for field in ('first_name', 'last_name'):
        value = data.get(field)
        if value is not None and (not isinstance(value, str) or len(value) > 50):
            errors[field] = f'{field} must be a string under 50 characters'
    return errors


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute")
def register():
    """Register a new user account."""
    try:
        data = request.get_json(silent=True) or {}

        errors = _validate_registration(data)
        if errors:
            raise ValidationError('Invalid registration data', details=errors)

        name = data['name'].strip()
        email = data['email'].strip().lower()

        if User.query.filter(db.func.lower(User.name) == name.lower()).first():
            raise ConflictError('Name already taken', code='NAME_TAKEN')
        if User.query.filter_by(email=email).first():
            raise ConflictError('Email already exists', code='EMAIL_TAKEN')

        user = User(
            name=name,
            email=email,
            first_name=(data.get('first_name') or '').strip() or None,
            last_name=(data.get('last_name') or '').strip() or None,
        )
        user.set_password(data['password'])

        db.session.add(user)
        db.session.commit()
        logger.info(f"Registered user {user.id} ({user.name})")

        return jsonify({
            'message': 'User registered successfully',
            'token': create_access_token(user),
            'user': user.to_dict()
        }), 201
    except Exception as e:
        db.session.rollback()
        return error_response(e)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Authenticate user and return JWT token."""
    try:
        data = request.get_json(silent=True) or {}

        if not data.get('email') or not data.get('password'):
            raise ValidationError('Missing email or password')

        user = User.query.filter_by(email=data['email'].strip().lower()).first()
        if not user or not user.check_password(data['password']):
            raise AuthenticationError('Invalid email or password', code='INVALID_CREDENTIALS')

        user.last_active_at = datetime.utcnow()
        db.session.commit()

        return jsonify({
            'message': 'Login successful',
            'token': create_access_token(user),
            'user': user.to_dict()
        }), 200
    except Exception as e:
        db.session.rollback()
        return error_response(e)
