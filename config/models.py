from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

# This will be initialized in app.py
db = SQLAlchemy()

def _iso(value):
    return value.isoformat() if value else None

class User(db.Model):
    """Wallet-keyed community members, scouts and curators"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    wallet_address = db.Column(db.String(42), unique=True, nullable=False, index=True)
    username = db.Column(db.String(50), unique=True)
    display_name = db.Column(db.String(100))
    email = db.Column(db.String(100))
    profile_slug = db.Column(db.String(100), unique=True)
    bio = db.Column(db.Text)
    avatar = db.Column(db.String(500))
    location = db.Column(db.String(200))
    title = db.Column(db.String(100))
    skills = db.Column(db.JSON, default=list)
    social_links = db.Column(db.JSON, default=dict)
    ens_name = db.Column(db.String(100))
    is_authorized_verifier = db.Column(db.Boolean, default=False, nullable=False)
    has_claimed_new_user_reward = db.Column(db.Boolean, default=False, nullable=False)
    total_rewards_earned = db.Column(db.Float, default=0.0, nullable=False)
    badges = db.Column(db.JSON, default=list)
    public_profile = db.Column(db.Boolean, default=True, nullable=False)
    show_reward_balance = db.Column(db.Boolean, default=True, nullable=False)
    qr_card_style = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_active = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    reviews = db.relationship('Review', backref='user', lazy=True)

    def to_curator_dict(self):
        return {
            'id': self.id,
            'walletAddress': self.wallet_address,
            'username': self.username,
            'displayName': self.display_name,
            'avatar': self.avatar,
            'isAuthorizedVerifier': self.is_authorized_verifier,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }

    def to_dict(self):
        return {
            'id': self.id,
            'walletAddress': self.wallet_address,
            'username': self.username,
            'displayName': self.display_name,
            'bio': self.bio,
            'avatar': self.avatar,
            'location': self.location,
            'profileSlug': self.profile_slug,
            'title': self.title,
            'skills': self.skills or [],
            'socialLinks': self.social_links or {},
            'ensName': self.ens_name,
            'isAuthorizedVerifier': self.is_authorized_verifier,
            'totalRewardsEarned': self.total_rewards_earned,
            'badges': self.badges or [],
            'publicProfile': self.public_profile,
            'showRewardBalance': self.show_reward_balance,
            'qrCardStyle': self.qr_card_style,
            'createdAt': _iso(self.created_at),
            'lastActive': _iso(self.last_active)
        }

    def __repr__(self):
        return f"<User {self.wallet_address}>"

class Venue(db.Model):
    """Places with a piano and/or jam sessions, submitted by a wallet"""
    __tablename__ = 'venues'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(220), unique=True, nullable=False, index=True)
    city = db.Column(db.String(100), nullable=False)
    contact_info = db.Column(db.String(200), nullable=False)
    contact_type = db.Column(db.String(50), default='email', nullable=False)
    description = db.Column(db.Text)
    address = db.Column(db.Text)
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    phone = db.Column(db.String(50))
    website = db.Column(db.String(200))
    has_piano = db.Column(db.Boolean, default=False, nullable=False)
    has_jam_session = db.Column(db.Boolean, default=False, nullable=False)
    amenities = db.Column(db.JSON, default=list)
    tags = db.Column(db.JSON, default=list)
    social_links = db.Column(db.JSON, default=dict)
    price_range = db.Column(db.String(10))
    rating = db.Column(db.Float, default=0.0, nullable=False)
    review_count = db.Column(db.Integer, default=0, nullable=False)
    submitted_by = db.Column(db.String(42), nullable=False, index=True)
    venue_hash = db.Column(db.String(66), index=True)
    ipfs_hash = db.Column(db.String(100))
    verified = db.Column(db.Boolean, default=False, nullable=False)
    verified_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    reviews = db.relationship('Review', backref='venue', lazy=True,
                              cascade='all, delete-orphan', order_by='Review.created_at.desc()')
    verifications = db.relationship('VenueVerification', backref='venue', lazy=True,
                                    cascade='all, delete-orphan',
                                    order_by='VenueVerification.timestamp.desc()')
    analytics = db.relationship('VenueAnalytics', backref='venue', lazy=True,
                                cascade='all, delete-orphan')

    def to_dict(self, include_reviews=None, include_verifications=None):
        data = {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'city': self.city,
            'contactInfo': self.contact_info,
            'contactType': self.contact_type,
            'description': self.description,
            'address': self.address,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'phone': self.phone,
            'website': self.website,
            'hasPiano': self.has_piano,
            'hasJamSession': self.has_jam_session,
            'amenities': self.amenities or [],
            'tags': self.tags or [],
            'socialLinks': self.social_links or {},
            'priceRange': self.price_range,
            'rating': self.rating,
            'reviewCount': self.review_count,
            'submittedBy': self.submitted_by,
            'venueHash': self.venue_hash,
            'ipfsHash': self.ipfs_hash,
            'verified': self.verified,
            'verifiedAt': _iso(self.verified_at),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if include_reviews is not None:
            data['reviews'] = [review.to_dict() for review in self.reviews[:include_reviews or None]]
        if include_verifications is not None:
            data['verifications'] = [
                verification.to_dict()
                for verification in self.verifications[:include_verifications or None]
            ]
        return data

    def __repr__(self):
        return f"<Venue {self.slug}>"

class Review(db.Model):
    """Venue reviews written by users"""
    __tablename__ = 'reviews'

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(200))
    content = db.Column(db.Text)
    piano_quality = db.Column(db.Integer)
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        author = self.user
        return {
            'id': self.id,
            'venueId': self.venue_id,
            'rating': self.rating,
            'title': self.title,
            'content': self.content,
            'pianoQuality': self.piano_quality,
            'isVerified': self.is_verified,
            'author': {
                'walletAddress': author.wallet_address,
                'username': author.username,
                'displayName': author.display_name,
                'avatar': author.avatar
            } if author else None,
            'createdAt': _iso(self.created_at)
        }

class VenueVerification(db.Model):
    """Curator decisions on venue submissions"""
    __tablename__ = 'venue_verifications'

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False, index=True)
    verifier_address = db.Column(db.String(42), nullable=False)
    approved = db.Column(db.Boolean, nullable=False)
    notes = db.Column(db.Text)
    rating = db.Column(db.Integer)
    transaction_hash = db.Column(db.String(66))
    block_number = db.Column(db.Integer)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'venueId': self.venue_id,
            'verifierAddress': self.verifier_address,
            'approved': self.approved,
            'notes': self.notes,
            'rating': self.rating,
            'transactionHash': self.transaction_hash,
            'blockNumber': self.block_number,
            'timestamp': _iso(self.timestamp)
        }

class VenueAnalytics(db.Model):
    """Per-venue daily counters"""
    __tablename__ = 'venue_analytics'
    __table_args__ = (db.UniqueConstraint('venue_id', 'date', name='uq_venue_analytics_day'),)

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False)
    date = db.Column(db.Date, nullable=False)
    views = db.Column(db.Integer, default=0, nullable=False)
    unique_views = db.Column(db.Integer, default=0, nullable=False)
    detail_views = db.Column(db.Integer, default=0, nullable=False)
    qr_scans = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        return {
            'date': self.date.isoformat(),
            'views': self.views,
            'uniqueViews': self.unique_views,
            'detailViews': self.detail_views,
            'qrScans': self.qr_scans
        }

class Payment(db.Model):
    """Reward-token payments observed on chain"""
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey('venues.id', ondelete='SET NULL'))
    from_address = db.Column(db.String(42), nullable=False)
    to_address = db.Column(db.String(42), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    transaction_hash = db.Column(db.String(66), unique=True, nullable=False)
    block_number = db.Column(db.Integer)
    block_timestamp = db.Column(db.DateTime)
    payment_type = db.Column(db.String(50), default='direct_transfer')
    memo = db.Column(db.String(500), default='')
    payment_method = db.Column(db.String(20), default='web3')
    status = db.Column(db.String(20), default='CONFIRMED')
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'venueId': self.venue_id,
            'fromAddress': self.from_address,
            'toAddress': self.to_address,
            'amount': self.amount,
            'transactionHash': self.transaction_hash,
            'blockNumber': self.block_number,
            'paymentType': self.payment_type,
            'memo': self.memo,
            'status': self.status
        }

class BlockchainEvent(db.Model):
    """Contract logs recorded for processing"""
    __tablename__ = 'blockchain_events'
    __table_args__ = (db.UniqueConstraint('transaction_hash', 'log_index', name='uq_blockchain_event_log'),)

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(50), nullable=False, index=True)
    contract_address = db.Column(db.String(42), nullable=False)
    transaction_hash = db.Column(db.String(66), nullable=False)
    log_index = db.Column(db.Integer, default=0, nullable=False)
    block_number = db.Column(db.Integer, nullable=False, index=True)
    block_timestamp = db.Column(db.DateTime)
    event_data = db.Column(db.JSON, default=dict)
    processed = db.Column(db.Boolean, default=False, nullable=False, index=True)
    processed_at = db.Column(db.DateTime)
    attempts = db.Column(db.Integer, default=0, nullable=False)
    error = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<BlockchainEvent {self.event_type} {self.transaction_hash}:{self.log_index}>"

class SyncCheckpoint(db.Model):
    """Last fully indexed block per contract"""
    __tablename__ = 'sync_checkpoints'

    id = db.Column(db.Integer, primary_key=True)
    contract_address = db.Column(db.String(42), unique=True, nullable=False)
    last_block = db.Column(db.Integer, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'contractAddress': self.contract_address,
            'lastBlock': self.last_block,
            'updatedAt': _iso(self.updated_at)
        }
