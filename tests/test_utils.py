"""
Test suite for field cleaning, wallet helpers and venue hashing
"""

import unittest

from tests import SCOUT_ADDRESS

from scripts.rewards_contract import RewardsContractClient, generate_venue_hash, ZERO_ADDRESS
from scripts.utils import (
    is_valid_address,
    normalize_address,
    addresses_match,
    slugify,
    parse_bool_arg,
    clean_text_field,
    clean_url_field,
    clean_phone_field,
    clean_numeric_field,
    clean_integer_field,
    clean_string_list,
)

class TestWalletHelpers(unittest.TestCase):

    def test_is_valid_address(self):
        self.assertTrue(is_valid_address('0x' + 'aB' * 20))
        self.assertFalse(is_valid_address('0x' + 'a' * 39))
        self.assertFalse(is_valid_address('0x' + 'g' * 40))
        self.assertFalse(is_valid_address(None))

    def test_normalize_and_match(self):
        self.assertEqual(normalize_address('  0xABC  '), '0xabc')
        self.assertIsNone(normalize_address('   '))
        self.assertTrue(addresses_match('0xAbC', '0xaBc'))
        self.assertFalse(addresses_match(None, None))

class TestFieldCleaning(unittest.TestCase):

    def test_slugify(self):
        self.assertEqual(slugify('Piano Paradise Café'), 'piano-paradise-caf')
        self.assertEqual(slugify("  --Ronnie's   Bar-- "), 'ronnie-s-bar')
        self.assertEqual(slugify('***'), '')

    def test_parse_bool_arg(self):
        self.assertTrue(parse_bool_arg('TRUE'))
        self.assertFalse(parse_bool_arg('no'))
        self.assertIsNone(parse_bool_arg(''))
        self.assertIsNone(parse_bool_arg(None))

    def test_clean_text_field(self):
        self.assertEqual(clean_text_field('  **Jazz**   night [here](http://x.y) '), 'Jazz night here')
        self.assertIsNone(clean_text_field('   '))

    def test_clean_url_field(self):
        self.assertEqual(clean_url_field('pianobar.example'), 'https://pianobar.example')
        self.assertEqual(clean_url_field('http://pianobar.example'), 'http://pianobar.example')
        self.assertEqual(clean_url_field('[site](https://pianobar.example)'), 'https://pianobar.example')

    def test_clean_phone_field(self):
        self.assertEqual(clean_phone_field(' (415) 555-0123 ext'), '(415) 555-0123 x')

    def test_numeric_fields(self):
        self.assertEqual(clean_numeric_field('37.77'), 37.77)
        self.assertIsNone(clean_numeric_field('north'))
        self.assertIsNone(clean_numeric_field(True))
        self.assertEqual(clean_integer_field('4'), 4)
        self.assertIsNone(clean_integer_field(''))

    def test_clean_string_list(self):
        self.assertEqual(clean_string_list('WiFi, Bar, WiFi,'), ['WiFi', 'Bar'])
        self.assertEqual(clean_string_list(['Jazz', ' ', None]), ['Jazz'])
        self.assertEqual(clean_string_list({'a': 1}), [])

class TestRewardsContract(unittest.TestCase):

    def test_venue_hash_is_deterministic(self):
        first = generate_venue_hash('Piano Bar', 'Berlin', SCOUT_ADDRESS)
        self.assertEqual(first, generate_venue_hash('Piano Bar', 'Berlin', SCOUT_ADDRESS.upper().replace('0X', '0x')))
        self.assertNotEqual(first, generate_venue_hash('Piano Bar', 'Hamburg', SCOUT_ADDRESS))
        self.assertRegex(first, r'^0x[0-9a-f]{64}$')

    def test_development_mode_defaults(self):
        for address in ('', None, ZERO_ADDRESS):
            client = RewardsContractClient('http://localhost:8545', address)
            self.assertTrue(client.is_development)
            self.assertFalse(client.is_authorized_verifier(SCOUT_ADDRESS))
            self.assertFalse(client.has_claimed_new_user_reward(SCOUT_ADDRESS))
            self.assertEqual(client.get_block_number(), 0)
            self.assertEqual(client.get_events('ScoutRewarded', 0, 10), [])

if __name__ == '__main__':
    unittest.main()
