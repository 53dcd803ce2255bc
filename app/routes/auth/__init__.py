"""Auth routes package.

- core: Registration, login and shared validators
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

# Import all route modules (registers routes on auth_bp)
from app.routes.auth import core
