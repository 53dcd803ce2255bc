"""
Tests for authentication endpoints.
"""

import jwt
from faker import Faker

fake = Faker()


def _handle():
    return fake.pystr(min_chars=6, max_chars=10)


class TestRegistration:
    """Tests for POST /api/auth/register"""

    def test_register_success(self, client, db_session):
        data = {
            'name': _handle(),
            'email': fake.unique.email(),
            'password': 'securepassword123'
        }

        response = client.post('/api/auth/register', json=data)

        assert response.status_code == 201
        assert response.json['user']['name'] == data['name']
        assert response.json['token']

    def test_register_missing_fields(self, client, db_session):
        response = client.post('/api/auth/register', json={'name': _handle(), 'email': fake.email()})

        assert response.status_code == 400
        assert 'password' in response.json['details']

    def test_register_invalid_email(self, client, db_session):
        data = {'name': _handle(), 'email': 'not-an-email', 'password': 'securepassword123'}

        response = client.post('/api/auth/register', json=data)

        assert response.status_code == 400
        assert 'email' in response.json['details']

    def test_register_invalid_handle(self, client, db_session):
        data = {'name': 'has spaces', 'email': fake.email(), 'password': 'securepassword123'}

        response = client.post('/api/auth/register', json=data)

        assert response.status_code == 400

    def test_register_duplicate_email(self, client, test_user):
        data = {'name': _handle(), 'email': test_user['email'], 'password': 'securepassword123'}

        response = client.post('/api/auth/register', json=data)

        assert response.status_code == 409
        assert response.json['error'] == 'EMAIL_TAKEN'

    def test_register_duplicate_handle_case_insensitive(self, client, test_user):
        data = {'name': test_user['name'].upper(), 'email': fake.unique.email(), 'password': 'securepassword123'}

        response = client.post('/api/auth/register', json=data)

        assert response.status_code == 409

    def test_register_short_password(self, client, db_session):
        data = {'name': _handle(), 'email': fake.email(), 'password': '123'}

        response = client.post('/api/auth/register', json=data)

        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/auth/login"""

    def test_login_success(self, app, client, test_user):
        response = client.post('/api/auth/login', json={
            'email': test_user['email'],
            'password': test_user['password'],
        })

        assert response.status_code == 200
        payload = jwt.decode(response.json['token'], app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
        assert payload['user_id'] == test_user['id']

    def test_login_wrong_password(self, client, test_user):
        response = client.post('/api/auth/login', json={
            'email': test_user['email'],
            'password': 'wrongpassword',
        })

        assert response.status_code == 401
        assert response.json['error'] == 'INVALID_CREDENTIALS'

    def test_login_unknown_email(self, client, db_session):
        response = client.post('/api/auth/login', json={'email': fake.email(), 'password': 'whatever'})

        assert response.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        response = client.post('/api/auth/login', json={'email': fake.email()})

        assert response.status_code == 400


class TestTokens:
    """Tests for token handling on protected routes"""

    def test_invalid_token_rejected(self, client, test_user, make_post):
        post_id = make_post(test_user['id'])

        response = client.post(f'/api/posts/{post_id}/vote', json={'type': 'UP'},
                               headers={'Authorization': 'Bearer not-a-token'})

        assert response.status_code == 401
        assert response.json['message'] == 'Token is invalid'

    def test_invalid_token_is_anonymous_on_optional_routes(self, client, db_session):
        response = client.get('/api/posts', headers={'Authorization': 'Bearer not-a-token'})

        assert response.status_code == 200
