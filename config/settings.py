import os

from scripts.env_config import ensure_env_loaded, get_blockchain_config

# Load environment variables
ensure_env_loaded()

_blockchain = get_blockchain_config()

class Config:
    """Application configuration"""

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///piano_venues.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    WTF_CSRF_ENABLED = os.getenv('WTF_CSRF_ENABLED', 'False').lower() == 'true'

    # Permissions
    BLOG_OWNER_ADDRESS = os.getenv('BLOG_OWNER_ADDRESS', '')

    # Blockchain sync
    CELO_RPC_URL = _blockchain['rpc_url']
    REWARDS_CONTRACT_ADDRESS = _blockchain['rewards_contract_address']
    SYNC_CONFIRMATIONS = _blockchain['confirmations']
    SYNC_BLOCK_CHUNK = _blockchain['block_chunk']
    SYNC_START_BLOCK = _blockchain['start_block']
    SYNC_BATCH_SIZE = _blockchain['batch_size']

    # IPFS (Pinata)
    PINATA_API_KEY = os.getenv('PINATA_API_KEY')
    PINATA_SECRET_API_KEY = os.getenv('PINATA_SECRET_API_KEY')

    # Analytics
    ANALYTICS_TIMEZONE = os.getenv('ANALYTICS_TIMEZONE', 'UTC')

    # App
    APP_PORT = int(os.getenv('APP_PORT', '5001'))
    APP_HOST = os.getenv('APP_HOST', '0.0.0.0')

class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False

class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    BLOG_OWNER_ADDRESS = '0x' + 'a' * 40
    REWARDS_CONTRACT_ADDRESS = ''
    PINATA_API_KEY = 'test-pinata-key'
    PINATA_SECRET_API_KEY = 'test-pinata-secret'

# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
