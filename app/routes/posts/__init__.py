"""Post routes package.

This package organizes post-related routes into logical submodules:
- queries: Paginated, cached post listing
- create: Post creation with categorization and attachments
- votes: Vote toggle and vote counts
- detail: Fetch, edit and delete a single post
- comments: Comment threads, new comments and counts
- helpers: Shared utilities (request parsing, batch lookups, response shaping)
"""

from flask import Blueprint

posts_bp = Blueprint('posts', __name__)

# Import and register all route modules
from app.routes.posts import queries
from app.routes.posts import create
from app.routes.posts import votes
from app.routes.posts import comments
from app.routes.posts import detail
