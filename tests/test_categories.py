"""
Tests for GET /api/categories.
"""

from app import db
from app.models import Category


class TestCategories:
    """Tests for listing and looking up categories"""

    def test_busiest_first(self, client, categories):
        Category.query.filter_by(id=categories['Career']).update({Category.post_count: 5})
        Category.query.filter_by(id=categories['Business']).update({Category.post_count: 2})
        db.session.commit()

        names = [c['name'] for c in client.get('/api/categories').get_json()['categories']]

        assert names[:2] == ['Career', 'Business']
        assert names[2:] == sorted(names[2:])

    def test_count_is_primary_posts(self, client, test_user, categories, make_post):
        make_post(test_user['id'], category='Design', extra_categories=['Business'])
        make_post(test_user['id'], category='Design')

        listed = {c['name']: c for c in client.get('/api/categories').get_json()['categories']}

        assert listed['Design']['count'] == 2
        assert listed['Business']['count'] == 0

    def test_lookup_by_name_ignores_case(self, client, categories):
        response = client.get('/api/categories?name=dESIGN')

        assert response.status_code == 200
        assert response.get_json()['category']['id'] == categories['Design']

    def test_unknown_name(self, client, categories):
        response = client.get('/api/categories?name=Landscape')

        assert response.status_code == 404
        assert response.get_json()['error'] == 'CATEGORY_NOT_FOUND'
