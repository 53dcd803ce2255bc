from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import logging
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
limiter = Limiter(key_func=get_remote_address)

logger = logging.getLogger(__name__)


def _env_bool(name, default='false'):
    return os.getenv(name, default).lower() in ('true', '1', 'yes')


def create_app(config_name='development'):
    app = Flask(__name__)

    # Config
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv(
        'DATABASE_URL',
        'sqlite:///forum.db'
    )
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', 86400))

    # Response cache for GET /api/posts
    app.config['RESPONSE_CACHE_TTL'] = float(os.getenv('RESPONSE_CACHE_TTL', 60))
    app.config['RESPONSE_CACHE_MAX_ENTRIES'] = int(os.getenv('RESPONSE_CACHE_MAX_ENTRIES', 100))
    app.config['CACHE_CLEAR_DEBOUNCE_SECONDS'] = float(os.getenv('CACHE_CLEAR_DEBOUNCE_SECONDS', 1.0))

    # Voting
    app.config['VOTE_RATE_LIMIT'] = int(os.getenv('VOTE_RATE_LIMIT', 10))
    app.config['VOTE_RATE_WINDOW_SECONDS'] = float(os.getenv('VOTE_RATE_WINDOW_SECONDS', 60))
    app.config['VOTE_TRANSACTION_TIMEOUT_MS'] = int(os.getenv('VOTE_TRANSACTION_TIMEOUT_MS', 10000))
    app.config['VOTE_ISOLATION_LEVEL'] = os.getenv('VOTE_ISOLATION_LEVEL', 'READ COMMITTED')
    app.config['REDIS_URL'] = os.getenv('REDIS_URL')

    # Background work
    app.config['BACKGROUND_WORKERS'] = int(os.getenv('BACKGROUND_WORKERS', 4))
    app.config['BACKGROUND_TASKS_SYNC'] = _env_bool('BACKGROUND_TASKS_SYNC')

    # Sibling endpoints (mention dispatch)
    app.config['INTERNAL_API_URL'] = os.getenv('INTERNAL_API_URL', 'http://localhost:5000')

    if config_name == 'testing':
        app.config.update(
            TESTING=True,
            SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
            JWT_SECRET_KEY=os.getenv('JWT_SECRET_KEY', 'test-secret-key-for-testing'),
            CACHE_CLEAR_DEBOUNCE_SECONDS=0,
            BACKGROUND_TASKS_SYNC=True,
            REDIS_URL=None,
            RATELIMIT_ENABLED=False,
        )

    # Initialize extensions
    db.init_app(app)
    limiter.init_app(app)
    CORS(app, expose_headers=['ETag', 'X-Cache', 'X-New-Post-Created', 'X-Post-Id', 'X-Post-Type'])

    # Per-app services; kept on app.extensions so every app owns its own state
    from app.services.response_cache import ResponseCache
    from app.services.rate_limiter import create_vote_rate_limiter
    from app.services.tasks import BackgroundTaskQueue

    app.extensions['response_cache'] = ResponseCache(
        ttl=app.config['RESPONSE_CACHE_TTL'],
        max_entries=app.config['RESPONSE_CACHE_MAX_ENTRIES'],
    )
    app.extensions['vote_rate_limiter'] = create_vote_rate_limiter(app.config)
    app.extensions['task_queue'] = BackgroundTaskQueue(
        app,
        max_workers=app.config['BACKGROUND_WORKERS'],
        synchronous=app.config['BACKGROUND_TASKS_SYNC'],
    )

    # Create tables with error handling
    with app.app_context():
        from app import models  # noqa: F401  (registers tables)
        try:
            db.create_all()
        except Exception as e:
            logger.warning(f"Could not create database tables: {e}")

    # Register routes
    from app.routes import register_routes
    register_routes(app)

    from app.errors import register_error_handlers
    register_error_handlers(app)

    # Health check
    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok'}, 200

    return app
