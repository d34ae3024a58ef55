#!/usr/bin/env python3
"""
Venue queries and mutations shared by the API routes and the sync job.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import pytz
from flask import current_app
from sqlalchemy.exc import IntegrityError

from config.models import db, Venue, Review, VenueVerification, VenueAnalytics
from scripts.errors import ApiError
from scripts.rewards_contract import generate_venue_hash
from scripts.user_service import find_or_create_user, is_curator
from scripts.utils import (
    slugify,
    is_valid_address,
    normalize_address,
    addresses_match,
    clean_text_field,
    clean_multiline_field,
    clean_url_field,
    clean_phone_field,
    clean_numeric_field,
    clean_integer_field,
    clean_string_list,
    clean_bool_field,
    require_bool,
)

venue_logger = logging.getLogger('venue')

REQUIRED_VENUE_FIELDS = ['name', 'city', 'contactInfo', 'submittedBy']

ORDER_FIELDS = {
    'name': Venue.name,
    'rating': Venue.rating,
    'createdAt': Venue.created_at,
}

# Request field -> (model attribute, cleaner)
EDITABLE_VENUE_FIELDS = {
    'name': ('name', clean_text_field),
    'city': ('city', clean_text_field),
    'contactInfo': ('contact_info', clean_text_field),
    'contactType': ('contact_type', clean_text_field),
    'description': ('description', clean_multiline_field),
    'address': ('address', clean_text_field),
    'phone': ('phone', clean_phone_field),
    'website': ('website', clean_url_field),
    'hasPiano': ('has_piano', clean_bool_field),
    'hasJamSession': ('has_jam_session', clean_bool_field),
    'amenities': ('amenities', clean_string_list),
    'tags': ('tags', clean_string_list),
    'latitude': ('latitude', clean_numeric_field),
    'longitude': ('longitude', clean_numeric_field),
    'priceRange': ('price_range', clean_text_field),
}
NON_NULLABLE_FIELDS = {'name', 'city', 'contact_info', 'contact_type'}

def get_venues(city=None, has_piano=None, verified=None, search=None,
               limit=50, offset=0, order_by='createdAt', order_direction='desc') -> Dict[str, Any]:
    """Filtered, ordered, paginated venue listing"""
    query = Venue.query

    if city and city != 'all':
        query = query.filter(Venue.city.ilike(f'%{city}%'))
    if has_piano is not None:
        query = query.filter(Venue.has_piano == has_piano)
    if verified is not None:
        query = query.filter(Venue.verified == verified)

    if search:
        pattern = f'%{search}%'
        query = query.filter(db.or_(
            Venue.name.ilike(pattern),
            Venue.description.ilike(pattern),
            Venue.city.ilike(pattern),
            db.cast(Venue.tags, db.String).ilike(pattern),
        ))

    total_count = query.count()

    column = ORDER_FIELDS.get(order_by, Venue.created_at)
    if order_direction == 'asc':
        query = query.order_by(column.asc(), Venue.id.asc())
    else:
        query = query.order_by(column.desc(), Venue.id.desc())

    venues = query.offset(offset).limit(limit).all()

    return {
        'venues': venues,
        'total_count': total_count,
        'has_more': offset + limit < total_count,
    }

def get_venue(identifier) -> Optional[Venue]:
    """Get a venue by numeric id or slug"""
    if isinstance(identifier, int):
        return db.session.get(Venue, identifier)

    identifier = str(identifier).strip()
    if identifier.isdigit():
        return db.session.get(Venue, int(identifier))
    return Venue.query.filter_by(slug=identifier.lower()).first()

def generate_unique_slug(name: str) -> str:
    base_slug = slugify(name) or 'venue'
    slug = base_slug
    counter = 1
    while Venue.query.filter_by(slug=slug).first():
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug

def create_venue(data: Dict[str, Any]) -> Venue:
    """Create an unverified venue submission"""
    for field in REQUIRED_VENUE_FIELDS:
        if not data.get(field):
            raise ApiError.bad_request(f'Missing required field: {field}')

    submitted_by = data['submittedBy']
    if not is_valid_address(str(submitted_by).strip()):
        raise ApiError.bad_request('Invalid address', 'submittedBy must be a valid wallet address')
    submitted_by = normalize_address(submitted_by)

    name = clean_text_field(data['name'])
    city = clean_text_field(data['city'])
    contact_info = clean_text_field(data['contactInfo'])
    if not name or not city or not contact_info:
        raise ApiError.bad_request('Invalid request', 'name, city and contactInfo cannot be blank')

    venue_hash = None
    try:
        venue_hash = generate_venue_hash(name, city, submitted_by)
    except Exception as e:
        venue_logger.warning(f"Could not generate venue hash for {name}: {e}")

    venue = Venue(
        name=name,
        slug=generate_unique_slug(name),
        city=city,
        contact_info=contact_info,
        contact_type=clean_text_field(data.get('contactType')) or 'email',
        submitted_by=submitted_by,
        has_piano=require_bool(data, 'hasPiano', False),
        has_jam_session=require_bool(data, 'hasJamSession', False),
        description=clean_multiline_field(data.get('description')),
        address=clean_text_field(data.get('address')),
        phone=clean_phone_field(data.get('phone')),
        website=clean_url_field(data.get('website')),
        latitude=clean_numeric_field(data.get('latitude')),
        longitude=clean_numeric_field(data.get('longitude')),
        amenities=clean_string_list(data.get('amenities')),
        tags=clean_string_list(data.get('tags')),
        venue_hash=venue_hash,
        verified=False,
    )
    db.session.add(venue)
    db.session.commit()

    venue_logger.info(f"Venue submitted: {venue.name} (ID: {venue.id}) by {submitted_by}")
    return venue

def can_edit_venue(venue: Venue, caller: Optional[str]) -> bool:
    return is_curator(caller) or addresses_match(caller, venue.submitted_by)

def update_venue(venue: Venue, data: Dict[str, Any], caller: Optional[str]) -> Venue:
    if not caller:
        raise ApiError.unauthorized('Authentication required', 'x-wallet-address header is required')
    if not can_edit_venue(venue, caller):
        raise ApiError.forbidden('Unauthorized', 'Only the submitter or a curator can edit this venue')

    for request_field, (attribute, cleaner) in EDITABLE_VENUE_FIELDS.items():
        if request_field not in data:
            continue
        value = cleaner(data[request_field])
        if cleaner is clean_bool_field and value is None:
            raise ApiError.bad_request('Invalid request', f'{request_field} must be true or false')
        if attribute in NON_NULLABLE_FIELDS and not value:
            raise ApiError.bad_request('Invalid request', f'{request_field} cannot be blank')
        setattr(venue, attribute, value)

    if 'socialLinks' in data:
        links = data['socialLinks'] or {}
        if not isinstance(links, dict):
            raise ApiError.bad_request('Invalid request', 'socialLinks must be an object')
        venue.social_links = {key: clean_text_field(value) for key, value in links.items() if value}

    if 'verified' in data:
        if not is_curator(caller):
            raise ApiError.forbidden('Unauthorized', 'Only curators can change verification status')
        venue.verified = require_bool(data, 'verified', False)
        venue.verified_at = datetime.utcnow() if venue.verified else None

    venue.updated_at = datetime.utcnow()
    db.session.commit()

    venue_logger.info(f"Venue updated: {venue.name} (ID: {venue.id}) by {normalize_address(caller)}")
    return venue

def delete_venue(venue: Venue, caller: Optional[str]) -> str:
    if not caller:
        raise ApiError.unauthorized('Authentication required', 'x-wallet-address header is required')
    if not is_curator(caller):
        raise ApiError.forbidden('Unauthorized', 'Only curators can delete venues')

    venue_name = venue.name
    db.session.delete(venue)
    db.session.commit()

    venue_logger.info(f"Venue deleted: {venue_name} by {normalize_address(caller)}")
    return venue_name

def verify_venue(venue: Venue, data: Dict[str, Any], caller: Optional[str]) -> VenueVerification:
    """Record a curator decision; approval marks the venue verified"""
    if not is_curator(caller):
        raise ApiError.forbidden('Unauthorized', 'Only curators can verify venues')

    approved = data.get('approved')
    if not isinstance(approved, bool):
        raise ApiError.bad_request('Invalid request', 'approved must be true or false')

    rating = clean_integer_field(data.get('rating'))
    if rating is not None and not 1 <= rating <= 5:
        raise ApiError.bad_request('Invalid rating', 'rating must be between 1 and 5')

    verification = VenueVerification(
        venue_id=venue.id,
        verifier_address=normalize_address(caller),
        approved=approved,
        notes=clean_multiline_field(data.get('notes')),
        rating=rating,
        transaction_hash=clean_text_field(data.get('transactionHash')),
        block_number=clean_integer_field(data.get('blockNumber')),
    )
    db.session.add(verification)

    if approved:
        venue.verified = True
        venue.verified_at = datetime.utcnow()

    db.session.commit()
    venue_logger.info(f"Venue {venue.id} {'approved' if approved else 'rejected'} by {verification.verifier_address}")
    return verification

def mark_venue_as_verified(venue_hash: str) -> int:
    """Mark every venue carrying this hash verified; returns rows touched"""
    if not venue_hash:
        return 0
    venues = Venue.query.filter(db.func.lower(Venue.venue_hash) == venue_hash.lower()).all()
    now = datetime.utcnow()
    for venue in venues:
        venue.verified = True
        venue.verified_at = now
    return len(venues)

# Reviews
def add_review(venue: Venue, data: Dict[str, Any]) -> Review:
    author_address = data.get('authorAddress')
    if not author_address or not is_valid_address(str(author_address).strip()):
        raise ApiError.bad_request('Invalid address', 'authorAddress must be a valid wallet address')

    rating = clean_integer_field(data.get('rating'))
    if rating is None or not 1 <= rating <= 5:
        raise ApiError.bad_request('Invalid rating', 'rating must be between 1 and 5')

    piano_quality = clean_integer_field(data.get('pianoQuality'))
    if piano_quality is not None and not 1 <= piano_quality <= 5:
        raise ApiError.bad_request('Invalid rating', 'pianoQuality must be between 1 and 5')

    author = find_or_create_user(author_address)
    review = Review(
        venue_id=venue.id,
        user_id=author.id,
        rating=rating,
        title=clean_text_field(data.get('title')),
        content=clean_multiline_field(data.get('content')),
        piano_quality=piano_quality,
    )
    db.session.add(review)
    db.session.flush()

    refresh_venue_rating(venue)
    db.session.commit()
    return review

def refresh_venue_rating(venue: Venue):
    average, count = (db.session.query(db.func.avg(Review.rating), db.func.count(Review.id))
                      .filter(Review.venue_id == venue.id)
                      .one())
    venue.review_count = count or 0
    venue.rating = round(float(average), 2) if average is not None else 0.0

# Analytics
def _analytics_today():
    timezone_name = current_app.config.get('ANALYTICS_TIMEZONE', 'UTC')
    try:
        tz = pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        venue_logger.warning(f"Unknown analytics timezone {timezone_name}, using UTC")
        tz = pytz.UTC
    return datetime.now(tz).date()

def track_venue_view(venue_id: int, is_unique: bool = False):
    """Increment today's view counters for a venue"""
    today = _analytics_today()
    row = VenueAnalytics.query.filter_by(venue_id=venue_id, date=today).first()

    if row is None:
        row = VenueAnalytics(venue_id=venue_id, date=today, views=0, unique_views=0)
        db.session.add(row)
        try:
            db.session.flush()
        except IntegrityError:
            # Another request created today's row first
            db.session.rollback()
            row = VenueAnalytics.query.filter_by(venue_id=venue_id, date=today).one()

    row.views += 1
    if is_unique:
        row.unique_views += 1
    db.session.commit()
