"""
Tests for POST /api/users/<id>/export-zip-data.
"""

import io
import zipfile


def _open_zip(response):
    return zipfile.ZipFile(io.BytesIO(response.data))


class TestExportZipData:
    """Tests for the account data export"""

    def test_owner_gets_archive(self, client, test_user, auth_headers, make_post, make_comment):
        post_id = make_post(
            test_user['id'],
            content='A courtyard house in Kandy',
            images=['https://cdn.example.com/uploads/courtyard.jpg'],
        )
        make_comment(post_id, test_user['id'], content='Thanks for the feedback')

        response = client.post(f"/api/users/{test_user['id']}/export-zip-data", headers=auth_headers)

        assert response.status_code == 200
        assert response.mimetype == 'application/zip'
        assert 'attachment' in response.headers['Content-Disposition']

        archive = _open_zip(response)
        names = set(archive.namelist())
        assert {'profile_data.txt', 'posts_data.txt', 'comments_data.txt', 'README.txt'} <= names
        assert 'images/courtyard.jpg.txt' in names

        profile = archive.read('profile_data.txt').decode('utf-8')
        assert test_user['email'] in profile
        assert 'Total Posts: 1' in profile

        posts = archive.read('posts_data.txt').decode('utf-8')
        assert 'A courtyard house in Kandy' in posts
        assert 'Comments: 1' in posts

        comments = archive.read('comments_data.txt').decode('utf-8')
        assert 'Thanks for the feedback' in comments
        assert post_id in comments

        image = archive.read('images/courtyard.jpg.txt').decode('utf-8')
        assert image == 'Image URL: https://cdn.example.com/uploads/courtyard.jpg'

    def test_user_without_activity(self, client, test_user, auth_headers):
        response = client.post(f"/api/users/{test_user['id']}/export-zip-data", headers=auth_headers)

        archive = _open_zip(response)
        assert 'Total Posts: 0' in archive.read('posts_data.txt').decode('utf-8')
        assert not [n for n in archive.namelist() if n.startswith('images/')]

    def test_requires_authentication(self, client, test_user):
        response = client.post(f"/api/users/{test_user['id']}/export-zip-data")

        assert response.status_code == 401

    def test_other_users_data_forbidden(self, client, test_user, second_user, auth_headers):
        response = client.post(f"/api/users/{second_user['id']}/export-zip-data", headers=auth_headers)

        assert response.status_code == 403
        assert response.get_json()['error'] == 'FORBIDDEN'

    def test_deleted_account_not_found(self, client, test_user, auth_headers, db_session):
        from app.models import User
        db_session.delete(db_session.get(User, test_user['id']))
        db_session.commit()

        response = client.post(f"/api/users/{test_user['id']}/export-zip-data", headers=auth_headers)

        assert response.status_code == 404
