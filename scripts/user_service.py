#!/usr/bin/env python3
"""
User, curator and profile operations.

The blog owner address comes from configuration and is treated as a curator
outside the database. Every address is lowercased before it touches the DB.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from flask import current_app

from config.models import db, User, Venue, Review
from scripts.errors import ApiError
from scripts.rewards_contract import RewardsContractClient
from scripts.utils import (
    is_valid_address,
    normalize_address,
    addresses_match,
    clean_text_field,
    clean_multiline_field,
    clean_url_field,
    clean_string_list,
    require_bool,
)

logger = logging.getLogger('api')

# Profile fields a user (or the blog owner) may change, keyed by request field
PROFILE_TEXT_FIELDS = {
    'username': 'username',
    'displayName': 'display_name',
    'location': 'location',
    'profileSlug': 'profile_slug',
    'title': 'title',
    'qrCardStyle': 'qr_card_style',
}
PROFILE_BOOL_FIELDS = {
    'publicProfile': 'public_profile',
    'showRewardBalance': 'show_reward_balance',
}

def get_blog_owner_address() -> Optional[str]:
    return normalize_address(current_app.config.get('BLOG_OWNER_ADDRESS'))

def is_blog_owner(address: Optional[str]) -> bool:
    return addresses_match(address, get_blog_owner_address())

def get_user_by_address(address: Optional[str]) -> Optional[User]:
    normalized = normalize_address(address)
    if not normalized:
        return None
    return User.query.filter_by(wallet_address=normalized).first()

def is_curator(address: Optional[str]) -> bool:
    """Blog owner is always a curator; others need the DB flag"""
    if is_blog_owner(address):
        return True
    user = get_user_by_address(address)
    return bool(user and user.is_authorized_verifier)

def get_permissions(address: str) -> Dict[str, bool]:
    owner = is_blog_owner(address)
    curator = is_curator(address)
    return {
        'isBlogOwner': owner,
        'isAuthorizedCurator': curator,
        'canAccessCurator': owner or curator,
    }

def require_blog_owner(address: Optional[str]):
    if not is_blog_owner(address):
        raise ApiError.forbidden('Unauthorized', 'Only the blog owner can manage curators')

def require_curator(address: Optional[str]):
    if not is_curator(address):
        raise ApiError.forbidden('Unauthorized', 'Only curators can perform this action')

def find_or_create_user(wallet_address: str, **initial_data) -> User:
    """Find a user by wallet, creating it with on-chain status on first sight"""
    normalized = normalize_address(wallet_address)
    if not normalized:
        raise ApiError.bad_request('Invalid address', 'Wallet address is required')

    user = User.query.filter_by(wallet_address=normalized).first()
    if user:
        return user

    has_claimed = False
    is_verifier = False
    try:
        client = RewardsContractClient.from_config(current_app.config)
        has_claimed = client.has_claimed_new_user_reward(normalized)
        is_verifier = client.is_authorized_verifier(normalized)
    except Exception as e:
        logger.warning(f"Could not fetch blockchain status for {normalized}: {e}")

    user = User(
        wallet_address=normalized,
        has_claimed_new_user_reward=has_claimed,
        is_authorized_verifier=is_verifier,
        **initial_data
    )
    db.session.add(user)
    db.session.flush()
    logger.info(f"Created user {normalized}")
    return user

def update_user_blockchain_cache(wallet_address: str, **updates) -> User:
    user = find_or_create_user(wallet_address)
    for field, value in updates.items():
        setattr(user, field, value)
    user.last_active = datetime.utcnow()
    return user

# Curators
def list_curators():
    return (User.query
            .filter_by(is_authorized_verifier=True)
            .order_by(User.created_at.desc(), User.id.desc())
            .all())

def grant_curator(curator_address: Any) -> User:
    """Flag a wallet as curator, creating the user record if needed"""
    if not curator_address or not isinstance(curator_address, str):
        raise ApiError.bad_request('Invalid request', 'Curator wallet address is required')

    if not is_valid_address(curator_address.strip()):
        raise ApiError.bad_request('Invalid address', 'Invalid Ethereum wallet address format')

    normalized = normalize_address(curator_address)
    user = User.query.filter_by(wallet_address=normalized).first()

    if user:
        if user.is_authorized_verifier:
            raise ApiError.conflict('Already exists', 'This user is already an authorized curator')
        user.is_authorized_verifier = True
        user.updated_at = datetime.utcnow()
    else:
        user = User(wallet_address=normalized, is_authorized_verifier=True, public_profile=True)
        db.session.add(user)

    db.session.commit()
    logger.info(f"Curator granted: {normalized}")
    return user

def revoke_curator(address: str) -> User:
    normalized = normalize_address(address)

    if normalized == get_blog_owner_address():
        raise ApiError.bad_request('Invalid operation', 'Cannot remove blog owner from curators')

    user = get_user_by_address(normalized)
    if not user:
        raise ApiError.not_found('Not found', 'User not found')

    if not user.is_authorized_verifier:
        raise ApiError.bad_request('Not a curator', 'This user is not an authorized curator')

    user.is_authorized_verifier = False
    user.updated_at = datetime.utcnow()
    db.session.commit()
    logger.info(f"Curator removed: {normalized}")
    return user

# Profiles
def find_profile(identifier: str) -> Optional[User]:
    """Look a profile up by wallet address, profile slug or username"""
    needle = (identifier or '').strip().lower()
    if not needle:
        return None
    return User.query.filter(db.or_(
        User.wallet_address == needle,
        db.func.lower(User.profile_slug) == needle,
        db.func.lower(User.username) == needle,
    )).first()

def build_profile_response(user: User) -> Dict[str, Any]:
    venues_discovered = Venue.query.filter(
        db.func.lower(Venue.submitted_by) == user.wallet_address
    ).count()
    review_count = Review.query.filter_by(user_id=user.id).count()

    profile = user.to_dict()
    if not user.public_profile:
        profile = {key: profile[key] for key in (
            'walletAddress', 'username', 'displayName', 'avatar', 'profileSlug', 'publicProfile'
        )}
    elif not user.show_reward_balance:
        profile.pop('totalRewardsEarned', None)

    return {
        'profile': profile,
        'venuesDiscovered': venues_discovered,
        'reviewCount': review_count,
    }

def _ensure_unique(field, value, user_id, label):
    if value is None:
        return
    existing = User.query.filter(db.func.lower(field) == value.lower(), User.id != user_id).first()
    if existing:
        raise ApiError.conflict('Already taken', f'This {label} is already taken')

def update_profile(address: str, data: Dict[str, Any]) -> User:
    requester = normalize_address(data.get('requesterAddress'))
    if not requester:
        raise ApiError.unauthorized('Authentication required')

    profile_address = normalize_address(address)
    if requester != profile_address and not is_blog_owner(requester):
        raise ApiError.forbidden('Unauthorized', 'You can only edit your own profile')

    user = get_user_by_address(profile_address)
    if not user:
        raise ApiError.not_found('Profile not found')

    for request_field, attribute in PROFILE_TEXT_FIELDS.items():
        if request_field in data:
            setattr(user, attribute, clean_text_field(data[request_field]))

    for request_field, attribute in PROFILE_BOOL_FIELDS.items():
        value = require_bool(data, request_field)
        if value is not None:
            setattr(user, attribute, value)

    if 'bio' in data:
        user.bio = clean_multiline_field(data['bio'])
    if 'avatar' in data:
        user.avatar = clean_url_field(data['avatar'])
    if 'skills' in data:
        user.skills = clean_string_list(data['skills'])
    if 'socialLinks' in data:
        links = data['socialLinks'] or {}
        if not isinstance(links, dict):
            raise ApiError.bad_request('Invalid request', 'socialLinks must be an object')
        user.social_links = {key: clean_text_field(value) for key, value in links.items() if value}

    with db.session.no_autoflush:
        _ensure_unique(User.username, user.username, user.id, 'username')
        _ensure_unique(User.profile_slug, user.profile_slug, user.id, 'profile slug')

    user.last_active = datetime.utcnow()
    db.session.commit()
    return user
