"""User routes: account data export."""

import io
import logging

from flask import Blueprint, send_file

from app import db
from app.errors import ForbiddenError, NotFoundError, error_response
from app.models import User
from app.services.export import build_user_export
from app.utils import token_required

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__)


@users_bp.route('/<user_id>/export-zip-data', methods=['POST'])
@token_required
def export_zip_data(current_user_id, user_id):
    """Download the caller's profile, posts and comments as a ZIP archive."""
    try:
        if current_user_id != user_id:
            raise ForbiddenError('You can only export your own data')

        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError('User not found', code='USER_NOT_FOUND')

        archive, filename = build_user_export(user)
        return send_file(
            io.BytesIO(archive),
            mimetype='application/zip',
            as_attachment=True,
            download_name=filename,
        )
    except Exception as e:
        return error_response(e)
