#!/usr/bin/env python3
"""
CENTRALIZED ENVIRONMENT CONFIGURATION
Ensures environment variables are loaded consistently across the app and scripts
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Get the project root directory (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
ENV_FILE = PROJECT_ROOT / '.env'

# Global flag to track if environment has been loaded
_ENV_LOADED = False

def ensure_env_loaded():
    """Ensure environment variables are loaded exactly once"""
    global _ENV_LOADED

    if not _ENV_LOADED:
        # Load .env file from project root; real environment variables win
        if ENV_FILE.exists():
            load_dotenv(ENV_FILE)

        _ENV_LOADED = True

    return _ENV_LOADED

def get_app_config() -> dict:
    """Get application configuration settings"""
    ensure_env_loaded()
    return {
        'default_page_size': int(os.getenv('DEFAULT_PAGE_SIZE', '50')),
        'max_page_size': int(os.getenv('MAX_PAGE_SIZE', '100')),
        'api_timeout': int(os.getenv('API_TIMEOUT', '30')),
        'analytics_timezone': os.getenv('ANALYTICS_TIMEZONE', 'UTC'),
        'debug_mode': os.getenv('DEBUG_MODE', 'false').lower() == 'true'
    }

def get_blockchain_config() -> dict:
    """Get blockchain sync settings"""
    ensure_env_loaded()
    return {
        'rpc_url': os.getenv('CELO_RPC_URL', 'https://alfajores-forno.celo-testnet.org'),
        'rewards_contract_address': os.getenv('REWARDS_CONTRACT_ADDRESS', ''),
        'confirmations': int(os.getenv('SYNC_CONFIRMATIONS', '5')),
        'block_chunk': int(os.getenv('SYNC_BLOCK_CHUNK', '2000')),
        'start_block': int(os.getenv('SYNC_START_BLOCK', '0')),
        'batch_size': int(os.getenv('SYNC_BATCH_SIZE', '10')),
    }

def get_api_keys() -> dict:
    """Get all API keys with automatic loading"""
    ensure_env_loaded()

    return {
        'PINATA_API_KEY': os.getenv('PINATA_API_KEY'),
        'PINATA_SECRET_API_KEY': os.getenv('PINATA_SECRET_API_KEY'),
    }

def check_env_status() -> dict:
    """Check environment configuration status"""
    ensure_env_loaded()

    api_keys = get_api_keys()
    blockchain = get_blockchain_config()

    return {
        'env_file_exists': ENV_FILE.exists(),
        'env_loaded': _ENV_LOADED,
        'blog_owner_configured': bool(os.getenv('BLOG_OWNER_ADDRESS')),
        'rewards_contract_configured': bool(blockchain['rewards_contract_address']),
        'api_keys_status': {key: bool(value) for key, value in api_keys.items()}
    }

# Auto-load environment when this module is imported
ensure_env_loaded()

if __name__ == "__main__":
    status = check_env_status()
    print(f"Environment File Exists: {status['env_file_exists']}")
    print(f"Blog Owner Configured: {status['blog_owner_configured']}")
    print(f"Rewards Contract Configured: {status['rewards_contract_configured']}")

    print("\nAPI Keys Status:")
    for key, has_key in status['api_keys_status'].items():
        status_icon = "✅" if has_key else "❌"
        print(f"  {status_icon} {key}")
