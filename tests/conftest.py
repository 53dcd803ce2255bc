"""
Pytest configuration and fixtures for testing the Forum API.
"""

import os
import sys
from datetime import datetime, timedelta

import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app, db
from app.models import Attachment, Comment, Post, User, Vote
from app.services.seed import seed_categories

fake = Faker()


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'
    os.environ['JWT_SECRET_KEY'] = 'test-secret-key-for-testing'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session and empty in-process caches for each test."""
    app.extensions['response_cache'].clear()
    app.extensions['vote_rate_limiter'].reset()
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        yield db.session
        db.session.rollback()


def _create_user(password='testpassword123', **overrides):
    """Helper to create a user with sensible defaults."""
    data = {
        'name': fake.user_name().replace('.', '_') + fake.pystr(min_chars=4, max_chars=6),
        'email': fake.unique.email(),
        'first_name': fake.first_name(),
        'last_name': fake.last_name(),
    }
    data.update(overrides)
    user = User(**data)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'password': password,
    }


@pytest.fixture
def test_user(app, db_session):
    """Create a test user."""
    return _create_user()


@pytest.fixture
def second_user(app, db_session):
    """Create a second test user for interaction tests."""
    return _create_user(password='testpassword456')


@pytest.fixture
def third_user(app, db_session):
    """Create a third user for reply and notification tests."""
    return _create_user()


def _get_token(client, email, password):
    """Login and return JWT token."""
    resp = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    data = resp.get_json()
    if data is None or not data.get('token'):
        raise RuntimeError(f"Login failed: status={resp.status_code}, body={resp.data[:200]}")
    return data['token']


@pytest.fixture
def auth_headers(client, test_user):
    """Get authentication headers for test user."""
    token = _get_token(client, test_user['email'], test_user['password'])
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def second_auth_headers(client, second_user):
    """Get authentication headers for second user."""
    token = _get_token(client, second_user['email'], second_user['password'])
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def categories(db_session):
    """Seed the default categories. Returns name -> id."""
    from app.models import Category
    seed_categories()
    return {c.name: c.id for c in Category.query.all()}


@pytest.fixture
def make_post(db_session, categories):
    """Factory creating posts directly in the database."""
    def _make_post(author_id, category='Design', extra_categories=(), created_at=None,
                   images=(), **overrides):
        primary = categories[category]
        post = Post(
            author_id=author_id,
            content=overrides.pop('content', fake.paragraph()),
            category_id=primary,
            category_ids=[primary] + [categories[name] for name in extra_categories],
            created_at=created_at or datetime.utcnow(),
            updated_at=created_at or datetime.utcnow(),
            **overrides
        )
        db.session.add(post)
        db.session.flush()
        for url in images:
            db.session.add(Attachment(post_id=post.id, url=url, filename=url.rsplit('/', 1)[-1]))
        db.session.commit()
        return post.id
    return _make_post


@pytest.fixture
def make_comment(db_session):
    def _make_comment(post_id, author_id, upvotes=0, downvotes=0, minutes_ago=0, **overrides):
        comment = Comment(
            post_id=post_id,
            author_id=author_id,
            content=overrides.pop('content', fake.sentence()),
            parent_id=overrides.pop('parent_id', None),
            upvotes=upvotes,
            downvotes=downvotes,
            created_at=datetime.utcnow() - timedelta(minutes=minutes_ago),
        )
        db.session.add(comment)
        db.session.commit()
        return comment.id
    return _make_comment


@pytest.fixture
def make_vote(db_session):
    def _make_vote(post_id, user_id, vote_type='UP'):
        vote = Vote(post_id=post_id, user_id=user_id, type=vote_type)
        db.session.add(vote)
        db.session.commit()
        return vote.id
    return _make_vote
