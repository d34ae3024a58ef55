import os
import math
import logging
from datetime import datetime, timedelta

from flask import Flask, request, jsonify
from flask_cors import CORS
from flask_wtf.csrf import CSRFProtect

from scripts.env_config import ensure_env_loaded, get_app_config, check_env_status

# Ensure environment is loaded before configuration classes read it
ensure_env_loaded()

from config.models import db, VenueAnalytics
from config.settings import config
from scripts.errors import ApiError
from scripts.ipfs_service import IPFSService, create_metadata_from_form
from scripts.utils import normalize_address, parse_bool_arg
from scripts import blockchain_sync
from scripts import user_service
from scripts import venue_service

# Configure logging
def setup_logging():
    """Setup file and console logging"""
    # Create logs directory if it doesn't exist
    logs_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    # Configure logging format
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Setup file handler for all logs
    file_handler = logging.FileHandler(os.path.join(logs_dir, 'app.log'))
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(log_format))

    # Setup console handler for important logs
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    # Configure root logger
    logging.basicConfig(
        level=logging.DEBUG,
        format=log_format,
        handlers=[file_handler, console_handler]
    )

    # Create specific loggers
    app_logger = logging.getLogger('app')
    api_logger = logging.getLogger('api')
    venue_logger = logging.getLogger('venue')
    sync_logger = logging.getLogger('sync')

    return app_logger, api_logger, venue_logger, sync_logger

# Setup logging
app_logger, api_logger, venue_logger, sync_logger = setup_logging()

# Get app configuration
app_config = get_app_config()
DEFAULT_PAGE_SIZE = app_config['default_page_size']
MAX_PAGE_SIZE = app_config['max_page_size']

app = Flask(__name__)
config_name = os.getenv('APP_CONFIG') or os.getenv('FLASK_ENV') or 'default'
app.config.from_object(config.get(config_name, config['default']))
CORS(app)

# CSRF protection stays off for the wallet-header JSON API unless enabled explicitly
csrf = CSRFProtect(app)

db.init_app(app)

def init_db():
    """Create any missing tables"""
    with app.app_context():
        db.create_all()

def create_error_response(message, status_code=500, error=None):
    """Create standardized error response"""
    return jsonify({'success': False, 'error': error or message, 'message': message}), status_code

def api_error_response(e: ApiError):
    db.session.rollback()
    return jsonify(e.to_dict()), e.status_code

def get_caller_address():
    """Wallet address the client claims to act as"""
    return normalize_address(request.headers.get('x-wallet-address'))

def get_json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiError.bad_request('Invalid request', 'Request body must be a JSON object')
    return data

def parse_venue_id(venue_id):
    try:
        return int(venue_id)
    except (TypeError, ValueError):
        raise ApiError.bad_request('Invalid venue ID')

def load_venue(venue_id, by_id_only=False):
    identifier = parse_venue_id(venue_id) if by_id_only else venue_id
    venue = venue_service.get_venue(identifier)
    if not venue:
        raise ApiError.not_found('Venue not found')
    return venue

def utc_timestamp():
    return datetime.utcnow().isoformat() + 'Z'

@app.route('/api/health')
def health():
    """Database connectivity and configuration status"""
    try:
        db.session.execute(db.text('SELECT 1'))
        database_ok = True
    except Exception as e:
        db.session.rollback()
        app_logger.error(f"Health check database error: {e}")
        database_ok = False

    env_status = check_env_status()
    return jsonify({
        'success': database_ok,
        'database': 'ok' if database_ok else 'unavailable',
        'blogOwnerConfigured': bool(app.config.get('BLOG_OWNER_ADDRESS')),
        'rewardsContractConfigured': bool(app.config.get('REWARDS_CONTRACT_ADDRESS')),
        'apiKeys': env_status['api_keys_status'],
        'timestamp': utc_timestamp()
    }), 200 if database_ok else 503

# Venues
@app.route('/api/venues', methods=['GET'])
def get_venues():
    """List venues with filtering, search, ordering and pagination"""
    try:
        try:
            limit = min(int(request.args.get('limit', DEFAULT_PAGE_SIZE)), MAX_PAGE_SIZE)
            offset = max(int(request.args.get('offset', 0)), 0)
        except ValueError:
            raise ApiError.bad_request('Invalid pagination', 'limit and offset must be integers')
        limit = max(limit, 1)

        order_by = request.args.get('orderBy', 'createdAt')
        if order_by not in venue_service.ORDER_FIELDS:
            order_by = 'createdAt'
        order_direction = request.args.get('orderDirection', 'desc')
        if order_direction not in ('asc', 'desc'):
            order_direction = 'desc'

        result = venue_service.get_venues(
            city=request.args.get('city') or None,
            has_piano=parse_bool_arg(request.args.get('hasPiano')),
            verified=parse_bool_arg(request.args.get('verified')),
            search=(request.args.get('search') or '').strip() or None,
            limit=limit,
            offset=offset,
            order_by=order_by,
            order_direction=order_direction,
        )

        total_count = result['total_count']
        return jsonify({
            'success': True,
            'venues': [venue.to_dict(include_reviews=5) for venue in result['venues']],
            'totalCount': total_count,
            'hasMore': result['has_more'],
            'pagination': {
                'limit': limit,
                'offset': offset,
                'currentPage': offset // limit + 1,
                'totalPages': math.ceil(total_count / limit),
            },
            'timestamp': utc_timestamp()
        })

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Venues API error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to load venues')

@app.route('/api/venues', methods=['POST'])
def create_venue():
    """Submit a new venue for curator review"""
    try:
        venue = venue_service.create_venue(get_json_body())
        return jsonify({
            'success': True,
            'venue': venue.to_dict(),
            'message': 'Venue submitted successfully! It will be reviewed by our curators.'
        }), 201

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        venue_logger.error(f"Venue submission error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to submit venue')

@app.route('/api/venues/<venue_id>', methods=['GET'])
def get_venue(venue_id):
    """Get a venue by ID or slug and record the view"""
    try:
        venue = load_venue(venue_id)

        try:
            is_unique = request.headers.get('x-unique-view') == 'true'
            venue_service.track_venue_view(venue.id, is_unique)
        except Exception as e:
            db.session.rollback()
            venue_logger.warning(f"Could not track view for venue {venue.id}: {e}")

        since = (datetime.utcnow() - timedelta(days=30)).date()
        analytics = (VenueAnalytics.query
                     .filter(VenueAnalytics.venue_id == venue.id, VenueAnalytics.date >= since)
                     .order_by(VenueAnalytics.date.desc())
                     .all())

        data = venue.to_dict(include_reviews=0, include_verifications=0)
        data['analytics'] = [row.to_dict() for row in analytics]
        return jsonify({'venue': data, 'timestamp': utc_timestamp()})

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Venue detail API error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to fetch venue')

@app.route('/api/venues/<venue_id>', methods=['PUT'])
def update_venue(venue_id):
    """Update venue fields (submitter or curator)"""
    try:
        venue = load_venue(venue_id, by_id_only=True)
        venue = venue_service.update_venue(venue, get_json_body(), get_caller_address())
        return jsonify({
            'success': True,
            'venue': venue.to_dict(),
            'message': 'Venue updated successfully.'
        })

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        venue_logger.error(f"Venue update error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to update venue')

@app.route('/api/venues/<venue_id>', methods=['DELETE'])
def delete_venue(venue_id):
    """Delete a venue (curators only)"""
    try:
        venue = load_venue(venue_id, by_id_only=True)
        venue_name = venue_service.delete_venue(venue, get_caller_address())
        return jsonify({
            'success': True,
            'message': f'Venue "{venue_name}" deleted successfully'
        })

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        venue_logger.error(f"Venue deletion error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to delete venue')

@app.route('/api/venues/<venue_id>/verify', methods=['POST'])
def verify_venue(venue_id):
    """Record a curator verification decision"""
    try:
        venue = load_venue(venue_id, by_id_only=True)
        verification = venue_service.verify_venue(venue, get_json_body(), get_caller_address())
        return jsonify({
            'success': True,
            'verification': verification.to_dict(),
            'venue': venue.to_dict(),
            'message': 'Venue approved' if verification.approved else 'Venue rejected'
        }), 201

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        venue_logger.error(f"Venue verification error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to verify venue')

@app.route('/api/venues/<venue_id>/reviews', methods=['GET'])
def get_venue_reviews(venue_id):
    try:
        venue = load_venue(venue_id)
        return jsonify({
            'success': True,
            'reviews': [review.to_dict() for review in venue.reviews],
            'rating': venue.rating,
            'reviewCount': venue.review_count
        })

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Venue reviews API error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to fetch reviews')

@app.route('/api/venues/<venue_id>/reviews', methods=['POST'])
def add_venue_review(venue_id):
    try:
        venue = load_venue(venue_id)
        review = venue_service.add_review(venue, get_json_body())
        return jsonify({
            'success': True,
            'review': review.to_dict(),
            'rating': venue.rating,
            'reviewCount': venue.review_count
        }), 201

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Review submission error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to submit review')

@app.route('/api/venues/<venue_id>/metadata', methods=['GET'])
def get_venue_metadata(venue_id):
    """Fetch the venue's extended metadata from IPFS"""
    try:
        venue = load_venue(venue_id)
        if not venue.ipfs_hash:
            raise ApiError.not_found('Metadata not found', 'This venue has no IPFS metadata')

        result = IPFSService.from_config(app.config).get_metadata(venue.ipfs_hash)
        if not result['success']:
            return create_error_response(result['error'], 502, 'Failed to fetch metadata')

        return jsonify({'success': True, 'ipfsHash': venue.ipfs_hash, 'metadata': result['metadata']})

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Venue metadata API error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to fetch metadata')

@app.route('/api/venues/<venue_id>/metadata', methods=['PUT'])
def update_venue_metadata(venue_id):
    """Pin a new metadata version for the venue (curators only)"""
    try:
        venue = load_venue(venue_id, by_id_only=True)
        caller = get_caller_address()
        user_service.require_curator(caller)
        updates = get_json_body()

        ipfs = IPFSService.from_config(app.config)
        if venue.ipfs_hash:
            result = ipfs.update_metadata(venue.ipfs_hash, updates, venue.id, caller)
        else:
            result = ipfs.upload_metadata(create_metadata_from_form(updates, caller), venue.id)

        if not result['success']:
            return create_error_response(result['error'], 502, 'Failed to store metadata')

        venue.ipfs_hash = result['ipfs_hash']
        db.session.commit()
        return jsonify({'success': True, 'ipfsHash': venue.ipfs_hash})

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Venue metadata update error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to store metadata')

# Curators
@app.route('/api/admin/curators', methods=['GET'])
def get_curators():
    """List authorized curators (blog owner only)"""
    try:
        user_service.require_blog_owner(get_caller_address())
        curators = user_service.list_curators()
        return jsonify({
            'success': True,
            'curators': [curator.to_curator_dict() for curator in curators],
            'count': len(curators)
        })

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Error fetching curators: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to fetch curators')

@app.route('/api/admin/curators', methods=['POST'])
def add_curator():
    """Grant curator permissions to a wallet (blog owner only)"""
    try:
        user_service.require_blog_owner(get_caller_address())
        body = get_json_body()
        user = user_service.grant_curator(body.get('curatorAddress'))
        return jsonify({
            'success': True,
            'curator': user.to_curator_dict(),
            'message': 'Curator added successfully'
        }), 201

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Error adding curator: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to add curator')

@app.route('/api/admin/curators/<address>', methods=['DELETE'])
def remove_curator(address):
    """Remove curator permissions (blog owner only; the owner cannot be removed)"""
    try:
        user_service.require_blog_owner(get_caller_address())
        user = user_service.revoke_curator(address)
        return jsonify({
            'success': True,
            'message': 'Curator removed successfully',
            'user': user.to_curator_dict()
        })

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Error removing curator: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to remove curator')

# Permissions
@app.route('/api/auth/permissions')
def get_permissions():
    """Permission flags for a wallet address"""
    try:
        address = normalize_address(request.args.get('address'))
        if not address:
            raise ApiError.bad_request('Missing parameter', 'Wallet address is required')

        return jsonify({
            'success': True,
            'permissions': user_service.get_permissions(address)
        })

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Error checking permissions: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to check permissions')

# Profiles
@app.route('/api/profile/<address>', methods=['GET'])
def get_profile(address):
    """Public profile by wallet address, profile slug or username"""
    try:
        user = user_service.find_profile(address)
        if not user:
            raise ApiError.not_found('Profile not found')
        return jsonify(user_service.build_profile_response(user))

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Error fetching profile: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Internal server error')

@app.route('/api/profile/<address>', methods=['PATCH'])
def update_profile(address):
    """Update a profile (profile owner or blog owner)"""
    try:
        user = user_service.update_profile(address, get_json_body())
        return jsonify({'success': True, 'profile': user.to_dict()})

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        api_logger.error(f"Error updating profile: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to update profile')

# Blockchain sync
@app.route('/api/sync', methods=['GET'])
def get_sync_status():
    try:
        return jsonify({
            'status': 'success',
            'data': blockchain_sync.get_sync_status(),
            'timestamp': utc_timestamp()
        })

    except Exception as e:
        db.session.rollback()
        sync_logger.error(f"Event processing status API error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Failed to get event processing status')

@app.route('/api/sync', methods=['POST'])
def sync_action():
    """Trigger a background sync run or fetch detailed status"""
    try:
        body = request.get_json(silent=True)
        action = body.get('action') if isinstance(body, dict) else None

        if action == 'trigger':
            blockchain_sync.start_background_sync(app)
            return jsonify({
                'message': 'Manual event processing triggered. Check status for progress.',
                'action': 'triggered'
            })

        if action == 'status':
            return jsonify({'status': 'success', 'data': blockchain_sync.get_sync_status()})

        return jsonify({
            'success': False,
            'error': 'Invalid action',
            'supportedActions': ['trigger', 'status']
        }), 400

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        db.session.rollback()
        sync_logger.error(f"Event processing API error: {e}", exc_info=True)
        return create_error_response(str(e), 500, 'Event processing operation failed')

def main():
    init_db()

    port = int(os.getenv('PORT', app.config.get('APP_PORT', 5001)))
    debug = app.config.get('DEBUG', False)
    app_logger.info(f"Starting piano venues API on port {port}")
    app.run(host=app.config.get('APP_HOST', '0.0.0.0'), port=port, debug=debug)

if __name__ == '__main__':
    main()
