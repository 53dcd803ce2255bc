"""
Tests for POST /api/posts.
"""

import json

import pytest
from faker import Faker

from app.models import Attachment, Category, Post, UserBadge
from app.services import ai_classifier
from app.services.ai_classifier import Classification
from app.services.seed import seed_badges

fake = Faker()


@pytest.fixture(autouse=True)
def ai_disabled(monkeypatch):
    """No request in these tests may reach the real AI service."""
    monkeypatch.setattr(ai_classifier, 'GEMINI_API_KEY', '')


def _form(categories, **overrides):
    data = {
        'content': 'Looking for feedback on a courtyard house plan',
        'categoryId': categories['Design'],
        'isAnonymous': 'false',
    }
    data.update(overrides)
    return data


class TestCreatePost:
    """Tests for successful post creation"""

    def test_english_post_created(self, client, auth_headers, categories, test_user):
        response = client.post('/api/posts', data=_form(categories), headers=auth_headers)

        assert response.status_code == 201
        body = response.get_json()
        assert body['category'] == 'Design'
        assert body['categoryIds'] == [categories['Design']]
        assert body['upvotes'] == 0
        assert body['downvotes'] == 0
        assert body['comments'] == 0
        assert body['images'] == []
        assert body['userVote'] is None
        assert body['originalLanguage'] == 'English'
        assert body['author']['id'] == test_user['id']
        assert body['author']['name'] == f"{test_user['first_name']} {test_user['last_name']}"

        assert response.headers['X-New-Post-Created'] == 'true'
        assert response.headers['X-Post-Id'] == body['id']
        assert response.headers['X-Post-Type'] == 'text'
        assert 'no-store' in response.headers['Cache-Control']

    def test_content_preserved_verbatim(self, client, auth_headers, categories, db_session):
        content = '  <b>Spacing</b> and markup stay  '
        response = client.post('/api/posts', data=_form(categories, content=content), headers=auth_headers)

        assert response.status_code == 201
        assert db_session.get(Post, response.get_json()['id']).content == content

    def test_client_ai_suggestions_used_for_english(self, client, auth_headers, categories):
        data = _form(categories, aiSuggestedCategories=json.dumps(['Business', 'design', 'Career']))

        response = client.post('/api/posts', data=data, headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 201
        assert body['categoryIds'] == [categories['Design'], categories['Business'], categories['Career']]
        assert body['categories'] == ['Design', 'Business', 'Career']
        assert body['aiSuggestedCategory'] == 'Business'
        assert body['aiConfidence'] == 0.9

    def test_category_list_capped_at_four(self, client, auth_headers, categories):
        names = ['Business', 'Career', 'Academic', 'Construction', 'Informative']
        data = _form(categories, aiSuggestedCategories=json.dumps(names))

        response = client.post('/api/posts', data=data, headers=auth_headers)

        ids = response.get_json()['categoryIds']
        assert len(ids) == 4
        assert ids[0] == categories['Design']
        assert len(set(ids)) == 4

    def test_post_counts_incremented(self, client, auth_headers, categories, db_session):
        data = _form(categories, aiSuggestedCategories=json.dumps(['Business']))

        client.post('/api/posts', data=data, headers=auth_headers)

        db_session.expire_all()
        assert db_session.get(Category, categories['Design']).post_count == 1
        assert db_session.get(Category, categories['Business']).post_count == 1
        assert db_session.get(Category, categories['Career']).post_count == 0

    def test_non_english_uses_keyword_fallback_when_ai_fails(self, client, auth_headers, categories):
        data = _form(
            categories,
            content='නව නිවසක් සඳහා සැලසුම',
            categoryId=categories['Other'],
            originalLanguage='Sinhala',
        )

        response = client.post('/api/posts', data=data, headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 201
        assert body['categoryIds'] == [categories['Other'], categories['Design']]
        assert body['aiConfidence'] == 0.6
        assert body['originalLanguage'] == 'Sinhala'
        assert body['translatedContent'] == 'නව නිවසක් සඳහා සැලසුම'

    def test_non_english_uses_ai_classification(self, client, auth_headers, categories, monkeypatch):
        monkeypatch.setattr(ai_classifier, 'classify_post_strict', lambda content, names: Classification(
            category='Design',
            categories=['Design', 'Construction'],
            confidence=0.85,
            original_language='Sinhala',
            translated_content='A design for a new house',
        ))
        data = _form(categories, content='නව නිවසක් සඳහා සැලසුම', categoryId=categories['Other'],
                     originalLanguage='Sinhala')

        response = client.post('/api/posts', data=data, headers=auth_headers)

        body = response.get_json()
        assert body['categoryIds'] == [categories['Other'], categories['Design'], categories['Construction']]
        assert body['aiSuggestedCategory'] == 'Design'
        assert body['aiCategories'] == ['Construction']
        assert body['translatedContent'] == 'A design for a new house'

    def test_image_fields_create_attachments(self, client, auth_headers, categories, db_session):
        data = _form(
            categories,
            image0_url='https://cdn.example.com/uploads/photo.JPG',
            image1_url='https://cdn.example.com/uploads/plan',
            image1_name='plan.pdf',
        )

        response = client.post('/api/posts', data=data, headers=auth_headers)

        body = response.get_json()
        assert response.headers['X-Post-Type'] == 'image'
        assert body['images'] == [
            'https://cdn.example.com/uploads/photo.JPG',
            'https://cdn.example.com/uploads/plan',
        ]
        attachments = {a.filename: a for a in Attachment.query.filter_by(post_id=body['id']).all()}
        assert attachments['photo.JPG'].mime_type == 'image/jpeg'
        assert attachments['plan.pdf'].mime_type == 'application/pdf'

    def test_json_body_with_images(self, client, auth_headers, categories):
        response = client.post('/api/posts', json={
            'content': fake.paragraph(),
            'categoryId': categories['Design'],
            'tags': ['villa', 'tropical'],
            'images': ['https://cdn.example.com/a.png'],
        }, headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 201
        assert body['tags'] == ['villa', 'tropical']
        assert body['images'] == ['https://cdn.example.com/a.png']

    def test_anonymous_post_hides_author(self, client, auth_headers, categories):
        response = client.post('/api/posts', data=_form(categories, isAnonymous='true'), headers=auth_headers)

        author = response.get_json()['author']
        assert author['name'] == 'Anonymous'
        assert author['id'] is None
        assert author['badges'] == []

    def test_first_post_badge_awarded_in_background(self, client, auth_headers, categories, test_user, db_session):
        seed_badges()

        client.post('/api/posts', data=_form(categories), headers=auth_headers)

        badge_ids = {ub.badge_id for ub in UserBadge.query.filter_by(user_id=test_user['id']).all()}
        assert 'first-post' in badge_ids

    def test_listing_cache_invalidated(self, client, auth_headers, categories):
        first = client.get('/api/posts')
        assert first.get_json()['pagination']['total'] == 0

        client.post('/api/posts', data=_form(categories), headers=auth_headers)

        second = client.get('/api/posts')
        assert second.headers['X-Cache'] == 'MISS'
        assert second.get_json()['pagination']['total'] == 1

    def test_form_images_string_is_ignored(self, client, auth_headers, categories, db_session):
        data = _form(categories, images='https://cdn.example.com/a.png')

        response = client.post('/api/posts', data=data, headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 201
        assert body['images'] == []
        assert Attachment.query.filter_by(post_id=body['id']).count() == 0

    def test_json_images_object_is_ignored(self, client, auth_headers, categories):
        response = client.post('/api/posts', json={
            'content': fake.paragraph(),
            'categoryId': categories['Design'],
            'images': {'https://cdn.example.com/a.png': 'a.png'},
        }, headers=auth_headers)

        assert response.status_code == 201
        assert response.get_json()['images'] == []


class TestCreatePostSideEffects:
    """Failed auxiliary writes must not fail post creation"""

    def test_failed_count_increment_keeps_post(self, client, auth_headers, categories, db_session, monkeypatch):
        from app.routes.posts import create

        real_increment = create.increment_post_count

        def flaky_increment(category_id, amount=1):
            if category_id == categories['Business']:
                raise RuntimeError('counter row locked')
            return real_increment(category_id, amount)

        monkeypatch.setattr(create, 'increment_post_count', flaky_increment)
        data = _form(categories, aiSuggestedCategories=json.dumps(['Business']))

        response = client.post('/api/posts', data=data, headers=auth_headers)

        assert response.status_code == 201
        assert response.get_json()['categoryIds'] == [categories['Design'], categories['Business']]
        db_session.expire_all()
        assert db_session.get(Category, categories['Design']).post_count == 1
        assert db_session.get(Category, categories['Business']).post_count == 0

    def test_failed_attachment_keeps_post(self, client, auth_headers, categories, db_session, monkeypatch):
        from app.routes.posts import create

        def broken_attachment(post_id, image):
            raise RuntimeError('attachment storage unavailable')

        monkeypatch.setattr(create, '_add_attachment', broken_attachment)
        data = _form(categories, image0_url='https://cdn.example.com/uploads/photo.jpg')

        response = client.post('/api/posts', data=data, headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 201
        assert body['images'] == []
        assert db_session.get(Post, body['id']) is not None
        assert Attachment.query.count() == 0


class TestCreatePostErrors:
    """Tests for rejected post creation"""

    def test_requires_authentication(self, client, categories):
        response = client.post('/api/posts', data=_form(categories))

        assert response.status_code == 401
        assert response.get_json()['error'] == 'UNAUTHORIZED'

    def test_whitespace_only_content_rejected(self, client, auth_headers, categories):
        response = client.post('/api/posts', data=_form(categories, content='   \n '), headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 400
        assert body['error'] == 'VALIDATION_ERROR'
        assert 'content' in body['details']

    def test_content_too_long_rejected(self, client, auth_headers, categories):
        response = client.post('/api/posts', data=_form(categories, content='a' * 10001), headers=auth_headers)

        assert response.status_code == 400

    def test_too_many_tags_rejected(self, client, auth_headers, categories):
        tags = json.dumps([f'tag{i}' for i in range(11)])
        response = client.post('/api/posts', data=_form(categories, tags=tags), headers=auth_headers)

        assert response.status_code == 400
        assert 'tags' in response.get_json()['details']

    def test_unsupported_language_rejected(self, client, auth_headers, categories):
        response = client.post('/api/posts', data=_form(categories, originalLanguage='Klingon'),
                               headers=auth_headers)

        assert response.status_code == 400
        assert 'originalLanguage' in response.get_json()['details']

    def test_invalid_category_id_rejected(self, client, auth_headers, categories):
        response = client.post('/api/posts', data=_form(categories, categoryId='not a valid id!'),
                               headers=auth_headers)

        assert response.status_code == 400

    def test_unknown_category_not_found(self, client, auth_headers, categories, db_session):
        data = _form(categories, categoryId='6f1c2a7e-0000-4000-8000-000000000000')

        response = client.post('/api/posts', data=data, headers=auth_headers)

        assert response.status_code == 404
        assert response.get_json()['error'] == 'CATEGORY_NOT_FOUND'
        assert Post.query.count() == 0

    def test_connectivity_failure_returns_503(self, client, auth_headers, categories, monkeypatch):
        from app.routes.posts import create

        def unreachable(*args, **kwargs):
            raise RuntimeError('could not connect to server: Connection refused')

        monkeypatch.setattr(create, 'build_category_ids', unreachable)

        response = client.post('/api/posts', data=_form(categories), headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 503
        assert body['error'] == 'DATABASE_UNAVAILABLE'
        assert 'timestamp' in body
