"""
Test suite for permissions and profiles
"""

import unittest

from tests import ApiTestCase, OWNER_ADDRESS, CURATOR_ADDRESS, SCOUT_ADDRESS, STRANGER_ADDRESS

from config.models import Review

class TestPermissions(ApiTestCase):
    """/api/auth/permissions"""

    def get_permissions(self, address):
        response = self.client.get(f'/api/auth/permissions?address={address}')
        self.assertEqual(response.status_code, 200)
        return response.get_json()['permissions']

    def test_blog_owner_is_always_curator(self):
        permissions = self.get_permissions(OWNER_ADDRESS.upper().replace('0X', '0x'))
        self.assertEqual(permissions, {
            'isBlogOwner': True,
            'isAuthorizedCurator': True,
            'canAccessCurator': True,
        })

    def test_curator_permissions(self):
        self.create_user(CURATOR_ADDRESS, is_authorized_verifier=True)
        permissions = self.get_permissions(CURATOR_ADDRESS)
        self.assertFalse(permissions['isBlogOwner'])
        self.assertTrue(permissions['isAuthorizedCurator'])
        self.assertTrue(permissions['canAccessCurator'])

    def test_unknown_address_has_no_permissions(self):
        permissions = self.get_permissions(STRANGER_ADDRESS)
        self.assertFalse(any(permissions.values()))

    def test_missing_address(self):
        response = self.client.get('/api/auth/permissions')
        self.assertEqual(response.status_code, 400)

class TestProfiles(ApiTestCase):
    """/api/profile/<address>"""

    def setUp(self):
        super().setUp()
        self.scout = self.create_user(SCOUT_ADDRESS, username='PianoScout', profile_slug='piano-scout',
                                      display_name='Piano Scout', bio='Finding pianos',
                                      total_rewards_earned=42.0)
        venue = self.create_venue(submitted_by=SCOUT_ADDRESS)
        self.db.session.add(Review(venue_id=venue.id, user_id=self.scout.id, rating=5))
        self.db.session.commit()

    def test_get_profile_by_address_slug_and_username(self):
        for identifier in (SCOUT_ADDRESS, 'piano-scout', 'pianoscout'):
            response = self.client.get(f'/api/profile/{identifier}')
            self.assertEqual(response.status_code, 200, identifier)
            data = response.get_json()
            self.assertEqual(data['profile']['walletAddress'], SCOUT_ADDRESS)
            self.assertEqual(data['venuesDiscovered'], 1)
            self.assertEqual(data['reviewCount'], 1)
            self.assertEqual(data['profile']['totalRewardsEarned'], 42.0)

    def test_unknown_profile(self):
        response = self.client.get(f'/api/profile/{STRANGER_ADDRESS}')
        self.assertEqual(response.status_code, 404)

    def test_private_profile_returns_card_fields_only(self):
        self.scout.public_profile = False
        self.db.session.commit()

        profile = self.client.get(f'/api/profile/{SCOUT_ADDRESS}').get_json()['profile']
        self.assertEqual(profile['displayName'], 'Piano Scout')
        self.assertNotIn('bio', profile)
        self.assertNotIn('totalRewardsEarned', profile)

    def test_hidden_reward_balance(self):
        self.scout.show_reward_balance = False
        self.db.session.commit()

        profile = self.client.get(f'/api/profile/{SCOUT_ADDRESS}').get_json()['profile']
        self.assertEqual(profile['bio'], 'Finding pianos')
        self.assertNotIn('totalRewardsEarned', profile)

    def test_owner_updates_own_profile(self):
        response = self.client.patch(f'/api/profile/{SCOUT_ADDRESS}', json={
            'requesterAddress': SCOUT_ADDRESS,
            'bio': 'Jazz and classical',
            'skills': ['jazz', 'tuning'],
            'socialLinks': {'instagram': '@scout', 'twitter': ''},
        })
        self.assertEqual(response.status_code, 200)
        profile = response.get_json()['profile']
        self.assertEqual(profile['bio'], 'Jazz and classical')
        self.assertEqual(profile['skills'], ['jazz', 'tuning'])
        self.assertEqual(profile['socialLinks'], {'instagram': '@scout'})
        self.assertEqual(profile['username'], 'PianoScout')

    def test_blog_owner_can_update_any_profile(self):
        response = self.client.patch(f'/api/profile/{SCOUT_ADDRESS}', json={
            'requesterAddress': OWNER_ADDRESS,
            'displayName': 'Chief Scout',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['profile']['displayName'], 'Chief Scout')

    def test_profile_flags_must_be_booleans(self):
        for field in ('publicProfile', 'showRewardBalance'):
            response = self.client.patch(f'/api/profile/{SCOUT_ADDRESS}', json={
                'requesterAddress': SCOUT_ADDRESS,
                'bio': 'changed',
                field: 'false',
            })
            self.assertEqual(response.status_code, 400, field)
            self.assertEqual(response.get_json()['message'], f'{field} must be true or false')

        self.db.session.expire_all()
        self.assertTrue(self.scout.public_profile)
        self.assertEqual(self.scout.bio, 'Finding pianos')

        response = self.client.patch(f'/api/profile/{SCOUT_ADDRESS}', json={
            'requesterAddress': SCOUT_ADDRESS,
            'publicProfile': False,
        })
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()['profile']['publicProfile'])

    def test_update_requires_requester(self):
        response = self.client.patch(f'/api/profile/{SCOUT_ADDRESS}', json={'bio': 'x'})
        self.assertEqual(response.status_code, 401)

    def test_other_users_cannot_update(self):
        response = self.client.patch(f'/api/profile/{SCOUT_ADDRESS}', json={
            'requesterAddress': STRANGER_ADDRESS,
            'bio': 'hijacked',
        })
        self.assertEqual(response.status_code, 403)

    def test_update_unknown_profile(self):
        response = self.client.patch(f'/api/profile/{STRANGER_ADDRESS}', json={
            'requesterAddress': STRANGER_ADDRESS,
            'bio': 'new here',
        })
        self.assertEqual(response.status_code, 404)

    def test_username_taken(self):
        self.create_user(CURATOR_ADDRESS, username='curator')
        response = self.client.patch(f'/api/profile/{SCOUT_ADDRESS}', json={
            'requesterAddress': SCOUT_ADDRESS,
            'username': 'Curator',
        })
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.client.get(f'/api/profile/{SCOUT_ADDRESS}').get_json()['profile']['username'],
                         'PianoScout')

if __name__ == '__main__':
    unittest.main()
