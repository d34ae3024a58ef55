"""
Test suite for curator administration
"""

import unittest

from tests import ApiTestCase, OWNER_ADDRESS, CURATOR_ADDRESS, SCOUT_ADDRESS, STRANGER_ADDRESS

from config.models import User

OWNER_HEADERS = {'x-wallet-address': OWNER_ADDRESS.upper().replace('0X', '0x')}

class TestCuratorAdmin(ApiTestCase):
    """/api/admin/curators"""

    def test_list_requires_blog_owner(self):
        response = self.client.get('/api/admin/curators', headers={'x-wallet-address': STRANGER_ADDRESS})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()['message'], 'Only the blog owner can manage curators')

        response = self.client.get('/api/admin/curators')
        self.assertEqual(response.status_code, 403)

    def test_list_curators_newest_first(self):
        self.create_user(SCOUT_ADDRESS)
        self.client.post('/api/admin/curators', json={'curatorAddress': CURATOR_ADDRESS}, headers=OWNER_HEADERS)
        self.client.post('/api/admin/curators', json={'curatorAddress': SCOUT_ADDRESS}, headers=OWNER_HEADERS)

        data = self.client.get('/api/admin/curators', headers=OWNER_HEADERS).get_json()
        self.assertTrue(data['success'])
        self.assertEqual(data['count'], 2)
        self.assertEqual({c['walletAddress'] for c in data['curators']}, {CURATOR_ADDRESS, SCOUT_ADDRESS})

    def test_add_curator_creates_user(self):
        response = self.client.post('/api/admin/curators',
                                    json={'curatorAddress': CURATOR_ADDRESS.upper().replace('0X', '0x')},
                                    headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()['curator']['walletAddress'], CURATOR_ADDRESS)

        user = User.query.filter_by(wallet_address=CURATOR_ADDRESS).one()
        self.assertTrue(user.is_authorized_verifier)
        self.assertTrue(user.public_profile)

    def test_add_curator_flags_existing_user(self):
        self.create_user(SCOUT_ADDRESS, username='scout')
        response = self.client.post('/api/admin/curators', json={'curatorAddress': SCOUT_ADDRESS},
                                    headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()['curator']['username'], 'scout')
        self.assertEqual(User.query.count(), 1)

    def test_add_existing_curator_conflicts(self):
        self.create_user(CURATOR_ADDRESS, is_authorized_verifier=True)
        response = self.client.post('/api/admin/curators', json={'curatorAddress': CURATOR_ADDRESS},
                                    headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 409)

    def test_add_curator_validation(self):
        response = self.client.post('/api/admin/curators', json={}, headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['message'], 'Curator wallet address is required')

        response = self.client.post('/api/admin/curators', json={'curatorAddress': '0x123'}, headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['message'], 'Invalid Ethereum wallet address format')

    def test_add_curator_requires_blog_owner(self):
        self.create_user(CURATOR_ADDRESS, is_authorized_verifier=True)
        response = self.client.post('/api/admin/curators', json={'curatorAddress': SCOUT_ADDRESS},
                                    headers={'x-wallet-address': CURATOR_ADDRESS})
        self.assertEqual(response.status_code, 403)
        self.assertIsNone(User.query.filter_by(wallet_address=SCOUT_ADDRESS).first())

    def test_remove_curator(self):
        self.create_user(CURATOR_ADDRESS, is_authorized_verifier=True)
        response = self.client.delete(f'/api/admin/curators/{CURATOR_ADDRESS.upper().replace("0X", "0x")}',
                                      headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['message'], 'Curator removed successfully')
        self.assertFalse(User.query.filter_by(wallet_address=CURATOR_ADDRESS).one().is_authorized_verifier)

    def test_remove_curator_requires_blog_owner(self):
        self.create_user(CURATOR_ADDRESS, is_authorized_verifier=True)
        self.create_user(SCOUT_ADDRESS, is_authorized_verifier=True)

        for headers in ({'x-wallet-address': STRANGER_ADDRESS}, {'x-wallet-address': SCOUT_ADDRESS}, {}):
            response = self.client.delete(f'/api/admin/curators/{CURATOR_ADDRESS}', headers=headers)
            self.assertEqual(response.status_code, 403, headers)
            self.assertEqual(response.get_json()['message'], 'Only the blog owner can manage curators')

        self.db.session.expire_all()
        self.assertTrue(User.query.filter_by(wallet_address=CURATOR_ADDRESS).one().is_authorized_verifier)

    def test_curator_cannot_remove_themselves(self):
        self.create_user(CURATOR_ADDRESS, is_authorized_verifier=True)
        response = self.client.delete(f'/api/admin/curators/{CURATOR_ADDRESS}',
                                      headers={'x-wallet-address': CURATOR_ADDRESS})
        self.assertEqual(response.status_code, 403)

        self.db.session.expire_all()
        self.assertTrue(User.query.filter_by(wallet_address=CURATOR_ADDRESS).one().is_authorized_verifier)

    def test_cannot_remove_blog_owner(self):
        response = self.client.delete(f'/api/admin/curators/{OWNER_ADDRESS}', headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['message'], 'Cannot remove blog owner from curators')

    def test_remove_unknown_user(self):
        response = self.client.delete(f'/api/admin/curators/{STRANGER_ADDRESS}', headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 404)

    def test_remove_non_curator(self):
        self.create_user(SCOUT_ADDRESS)
        response = self.client.delete(f'/api/admin/curators/{SCOUT_ADDRESS}', headers=OWNER_HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'Not a curator')

if __name__ == '__main__':
    unittest.main()
