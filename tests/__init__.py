"""
Test configuration and utilities
"""

import unittest
import sys
import os

# Tests always run against the in-memory testing configuration
os.environ['APP_CONFIG'] = 'testing'

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

OWNER_ADDRESS = '0x' + 'a' * 40
CURATOR_ADDRESS = '0x' + 'c' * 40
SCOUT_ADDRESS = '0x' + '5' * 40
STRANGER_ADDRESS = '0x' + 'e' * 40

class ApiTestCase(unittest.TestCase):
    """Base test case with an app context and a fresh in-memory database"""

    def setUp(self):
        from app import app, db
        self.app = app
        self.db = db
        self.client = self.app.test_client()
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

    def tearDown(self):
        self.db.session.remove()
        self.db.drop_all()
        self.ctx.pop()

    def create_user(self, wallet_address, **fields):
        from config.models import User
        user = User(wallet_address=wallet_address.lower(), **fields)
        self.db.session.add(user)
        self.db.session.commit()
        return user

    def create_venue(self, **fields):
        from config.models import Venue
        data = {
            'name': 'Piano Bar',
            'slug': 'piano-bar',
            'city': 'Berlin',
            'contact_info': 'hello@pianobar.example',
            'submitted_by': SCOUT_ADDRESS,
            'has_piano': True,
        }
        data.update(fields)
        venue = Venue(**data)
        self.db.session.add(venue)
        self.db.session.commit()
        return venue

def run_tests():
    """Run all tests"""
    loader = unittest.TestLoader()
    start_dir = os.path.dirname(__file__)
    suite = loader.discover(start_dir, pattern='test_*.py')

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()

if __name__ == '__main__':
    success = run_tests()
    sys.exit(0 if success else 1)
