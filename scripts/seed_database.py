#!/usr/bin/env python3
"""
Seed the database with sample users, venues, verifications and reviews for development.

Usage:
    python scripts/seed_database.py
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from app import app, db
from config.models import User, Venue, VenueVerification, Review, Payment, VenueAnalytics
from scripts.venue_service import refresh_venue_rating
from datetime import datetime, date, timedelta

EXPLORER_ADDRESS = '0x742d35cc6634c0532925a3b8d0d35c5d35f65b8f'
JAZZ_LOVER_ADDRESS = '0x8ba1f109551bd432803012645aac136c13d248b9'

def seed_users():
    """Seed a scout and a curator"""
    users_data = [
        {
            'wallet_address': EXPLORER_ADDRESS,
            'username': 'pianoexplorer',
            'display_name': 'Piano Explorer',
            'email': 'explorer@pianos.com',
            'profile_slug': 'pianoexplorer',
            'bio': 'Passionate piano venue scout and Web3 enthusiast',
            'total_rewards_earned': 150.0,
            'has_claimed_new_user_reward': True,
            'is_authorized_verifier': False,
        },
        {
            'wallet_address': JAZZ_LOVER_ADDRESS,
            'username': 'jazzlover',
            'display_name': 'Jazz Lover',
            'email': 'jazz@music.com',
            'profile_slug': 'jazzlover',
            'bio': 'Jazz pianist and venue curator',
            'total_rewards_earned': 275.0,
            'has_claimed_new_user_reward': True,
            'is_authorized_verifier': True,
        },
    ]

    for user_data in users_data:
        user = User.query.filter_by(wallet_address=user_data['wallet_address']).first()
        if not user:
            db.session.add(User(**user_data))

    db.session.commit()
    print("Users seeded successfully")

def seed_venues():
    """Seed sample piano venues"""
    venues_data = [
        {
            'name': 'Piano Paradise Café',
            'slug': 'piano-paradise-cafe',
            'city': 'San Francisco',
            'contact_info': 'contact@pianoparadise.com',
            'contact_type': 'email',
            'submitted_by': EXPLORER_ADDRESS,
            'has_piano': True,
            'has_jam_session': False,
            'verified': True,
            'verified_at': datetime.utcnow(),
            'description': 'A cozy café with a beautiful grand piano and live performances every evening.',
            'address': '123 Music Street, San Francisco, CA 94102',
            'latitude': 37.7749,
            'longitude': -122.4194,
            'phone': '(415) 555-0123',
            'website': 'https://pianoparadise.com',
            'social_links': {'instagram': '@pianoparadise', 'facebook': 'PianoParadiseCafe'},
            'amenities': ['WiFi', 'Live Music', 'Coffee', 'Pastries', 'Piano Rental'],
            'tags': ['piano', 'coffee', 'live music', 'cozy', 'grand piano'],
            'price_range': '$$',
        },
        {
            'name': 'Melody Lounge',
            'slug': 'melody-lounge',
            'city': 'New York',
            'contact_info': 'info@melodylounge.com',
            'contact_type': 'email',
            'submitted_by': JAZZ_LOVER_ADDRESS,
            'has_piano': True,
            'has_jam_session': True,
            'verified': True,
            'verified_at': datetime.utcnow(),
            'description': 'Upscale lounge featuring jazz piano and weekly jam sessions.',
            'address': '456 Jazz Avenue, New York, NY 10001',
            'latitude': 40.7128,
            'longitude': -74.006,
            'phone': '(212) 555-0456',
            'website': 'https://melodylounge.com',
            'social_links': {'instagram': '@melodylounge', 'twitter': 'MelodyLoungeNYC'},
            'amenities': ['Bar', 'Live Music', 'Jazz', 'Cocktails', 'Private Events'],
            'tags': ['piano', 'jazz', 'cocktails', 'jam session', 'upscale'],
            'price_range': '$$$',
        },
        {
            'name': 'Austin Community Center',
            'slug': 'austin-community-center',
            'city': 'Austin',
            'contact_info': 'admin@austincc.org',
            'contact_type': 'email',
            'submitted_by': EXPLORER_ADDRESS,
            'has_piano': True,
            'has_jam_session': False,
            'verified': False,
            'description': 'Community center with an upright piano available for public use.',
            'address': '789 Community Drive, Austin, TX 78701',
            'latitude': 30.2672,
            'longitude': -97.7431,
            'phone': '(512) 555-0789',
            'website': 'https://austincc.org',
            'amenities': ['Public Access', 'Events', 'Classes', 'Meeting Rooms'],
            'tags': ['community', 'piano', 'public', 'events', 'practice'],
            'price_range': '$',
        },
        {
            'name': 'The Keys Restaurant',
            'slug': 'the-keys-restaurant',
            'city': 'Chicago',
            'contact_info': '(312) 555-0987',
            'contact_type': 'phone',
            'submitted_by': JAZZ_LOVER_ADDRESS,
            'has_piano': True,
            'has_jam_session': True,
            'verified': True,
            'verified_at': datetime.utcnow(),
            'description': 'Fine dining restaurant with live piano entertainment and monthly jam sessions.',
            'address': '321 Harmony Street, Chicago, IL 60601',
            'latitude': 41.8781,
            'longitude': -87.6298,
            'phone': '(312) 555-0987',
            'website': 'https://thekeysrestaurant.com',
            'social_links': {'instagram': '@thekeysrestaurant'},
            'amenities': ['Fine Dining', 'Live Music', 'Piano Bar', 'Private Dining', 'Valet'],
            'tags': ['restaurant', 'piano', 'fine dining', 'jam session', 'elegant'],
            'price_range': '$$$$',
        },
    ]

    for venue_data in venues_data:
        venue = Venue.query.filter_by(slug=venue_data['slug']).first()
        if not venue:
            db.session.add(Venue(**venue_data))

    db.session.commit()
    print("Venues seeded successfully")

def seed_verifications():
    """Seed curator decisions for the verified venues"""
    verifications_data = [
        ('piano-paradise-cafe', JAZZ_LOVER_ADDRESS, 5,
         'Excellent venue with high-quality grand piano. Staff is very accommodating to musicians.'),
        ('melody-lounge', EXPLORER_ADDRESS, 4,
         'Great atmosphere for jazz. Piano is well-maintained. Jam sessions are well-organized.'),
        ('the-keys-restaurant', EXPLORER_ADDRESS, 5,
         'Upscale restaurant with beautiful piano. Perfect for special occasions.'),
    ]

    for slug, verifier, rating, notes in verifications_data:
        venue = Venue.query.filter_by(slug=slug).first()
        if not venue or venue.verifications:
            continue
        db.session.add(VenueVerification(
            venue_id=venue.id,
            verifier_address=verifier,
            approved=True,
            notes=notes,
            rating=rating,
        ))

    db.session.commit()
    print("Verifications seeded successfully")

def seed_reviews():
    """Seed reviews and recompute venue ratings"""
    reviews_data = [
        ('piano-paradise-cafe', JAZZ_LOVER_ADDRESS, 5, 'Perfect piano café experience',
         'Love coming here for the atmosphere and the piano. The staff lets you play during quiet hours.', 5),
        ('melody-lounge', EXPLORER_ADDRESS, 4, 'Great jazz venue',
         'The jam sessions here are fantastic. Piano is in good condition.', 4),
        ('the-keys-restaurant', EXPLORER_ADDRESS, 5, 'Elegant dining with beautiful piano music',
         'Exceptional restaurant with live piano entertainment. The pianist takes requests.', 5),
    ]

    for slug, author_address, rating, title, content, piano_quality in reviews_data:
        venue = Venue.query.filter_by(slug=slug).first()
        author = User.query.filter_by(wallet_address=author_address).first()
        if not venue or not author or venue.reviews:
            continue
        db.session.add(Review(
            venue_id=venue.id,
            user_id=author.id,
            rating=rating,
            title=title,
            content=content,
            piano_quality=piano_quality,
            is_verified=True,
        ))
        db.session.flush()
        refresh_venue_rating(venue)

    db.session.commit()
    print("Reviews seeded successfully")

def seed_payments():
    """Seed sample reward-token payments"""
    payments_data = [
        ('piano-paradise-cafe', JAZZ_LOVER_ADDRESS, EXPLORER_ADDRESS, 25.0,
         '0x' + '1' * 64, 'Coffee and piano time', datetime(2024, 1, 15, 14, 30)),
        ('melody-lounge', EXPLORER_ADDRESS, JAZZ_LOVER_ADDRESS, 15.0,
         '0x' + '2' * 64, 'Tip for great jazz performance', datetime(2024, 1, 16, 19, 45)),
    ]

    for slug, from_address, to_address, amount, tx_hash, memo, timestamp in payments_data:
        if Payment.query.filter_by(transaction_hash=tx_hash).first():
            continue
        venue = Venue.query.filter_by(slug=slug).first()
        db.session.add(Payment(
            venue_id=venue.id if venue else None,
            from_address=from_address,
            to_address=to_address,
            amount=amount,
            transaction_hash=tx_hash,
            block_timestamp=timestamp,
            payment_type='venue_payment',
            memo=memo,
        ))

    db.session.commit()
    print("Payments seeded successfully")

def seed_analytics():
    """Seed a week of view counters for the verified venues"""
    today = date.today()
    for venue in Venue.query.filter_by(verified=True).all():
        for days_ago in (0, 1, 7):
            day = today - timedelta(days=days_ago)
            if VenueAnalytics.query.filter_by(venue_id=venue.id, date=day).first():
                continue
            views = 20 + venue.id * 7 + days_ago * 3
            db.session.add(VenueAnalytics(
                venue_id=venue.id,
                date=day,
                views=views,
                unique_views=views * 3 // 4,
                detail_views=views // 3,
                qr_scans=views // 6,
            ))

    db.session.commit()
    print("Analytics seeded successfully")

def seed_all_data():
    """Seed all sample data"""
    seed_users()
    seed_venues()
    seed_verifications()
    seed_reviews()
    seed_payments()
    seed_analytics()
    print("All data seeded successfully")

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
        seed_all_data()
