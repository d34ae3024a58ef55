"""
Configuration package for the Piano Venues directory
"""

from .models import *
from .settings import Config, config

__all__ = [
    'db', 'User', 'Venue', 'Review', 'VenueVerification', 'VenueAnalytics',
    'Payment', 'BlockchainEvent', 'SyncCheckpoint',
    'Config', 'config'
]
