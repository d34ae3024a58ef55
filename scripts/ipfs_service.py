#!/usr/bin/env python3
"""
IPFS integration using Pinata for storing extended venue metadata.

Every update pins a new document; the venue row keeps the latest hash.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger('api')

PINATA_API_URL = 'https://api.pinata.cloud'
PINATA_GATEWAY = 'https://gateway.pinata.cloud/ipfs'
PUBLIC_GATEWAY = 'https://ipfs.io/ipfs'

# Form field -> default used when building a fresh metadata document
METADATA_FIELDS = {
    'description': '',
    'fullAddress': '',
    'website': '',
    'pianoType': '',
    'pianoCondition': '',
    'pianoBrand': '',
    'lastTuned': '',
    'jamSchedule': '',
    'jamFrequency': '',
    'jamGenres': [],
    'operatingHours': '',
    'wheelchairAccessible': False,
    'parkingAvailable': False,
    'publicTransportNear': False,
    'facebook': '',
    'instagram': '',
    'twitter': '',
    'curatorNotes': '',
    'curatorRating': 0,
    'followUpNeeded': False,
    'specialNotes': '',
}

class IPFSConfigurationError(Exception):
    """Raised when Pinata credentials are missing"""

class IPFSService:
    """Pinata pinning and gateway client"""

    def __init__(self, api_key: Optional[str], secret_key: Optional[str], timeout: int = 30):
        self.api_key = api_key
        self.secret_key = secret_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, app_config) -> 'IPFSService':
        return cls(app_config.get('PINATA_API_KEY'), app_config.get('PINATA_SECRET_API_KEY'))

    def _auth_headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise IPFSConfigurationError('PINATA_API_KEY not configured')
        if not self.secret_key:
            raise IPFSConfigurationError('PINATA_SECRET_API_KEY not configured')
        return {
            'Content-Type': 'application/json',
            'pinata_api_key': self.api_key,
            'pinata_secret_api_key': self.secret_key,
        }

    def upload_metadata(self, metadata: Dict[str, Any], venue_id: int) -> Dict[str, Any]:
        """Pin a JSON metadata document; returns {'success', 'ipfs_hash'|'error'}"""
        try:
            payload = {
                'pinataContent': {
                    **metadata,
                    'venueId': venue_id,
                    'uploadedAt': datetime.utcnow().isoformat() + 'Z',
                },
                'pinataMetadata': {
                    'name': f'venue-{venue_id}-metadata',
                    'keyvalues': {
                        'venueId': str(venue_id),
                        'contentType': 'venue-metadata',
                        'version': str(metadata.get('version', 1)),
                    },
                },
                'pinataOptions': {'cidVersion': 1},
            }

            response = requests.post(
                f'{PINATA_API_URL}/pinning/pinJSONToIPFS',
                json=payload,
                headers=self._auth_headers(),
                timeout=self.timeout,
            )
            if not response.ok:
                raise RuntimeError(f'Pinata upload failed: {response.status_code} {response.text}')

            ipfs_hash = response.json()['IpfsHash']
            logger.info(f"IPFS upload successful for venue {venue_id}: {ipfs_hash}")
            return {'success': True, 'ipfs_hash': ipfs_hash}

        except (IPFSConfigurationError, RuntimeError, requests.RequestException, KeyError, ValueError) as e:
            logger.error(f"IPFS upload failed for venue {venue_id}: {e}")
            return {'success': False, 'error': str(e) or 'Failed to upload to IPFS'}

    def get_metadata(self, ipfs_hash: Optional[str]) -> Dict[str, Any]:
        """Fetch a metadata document, falling back to the public gateway"""
        if not ipfs_hash or not ipfs_hash.strip():
            return {'success': False, 'error': 'No IPFS hash provided'}

        ipfs_hash = ipfs_hash.strip()
        headers = {'Accept': 'application/json'}
        last_error = None

        for gateway in (PINATA_GATEWAY, PUBLIC_GATEWAY):
            try:
                response = requests.get(f'{gateway}/{ipfs_hash}', headers=headers, timeout=self.timeout)
                if response.ok:
                    return {'success': True, 'metadata': response.json()}
                last_error = f'{response.status_code} {response.reason}'
                logger.warning(f"Gateway {gateway} failed for {ipfs_hash}: {last_error}")
            except (requests.RequestException, ValueError) as e:
                last_error = str(e)
                logger.warning(f"Gateway {gateway} failed for {ipfs_hash}: {e}")

        logger.error(f"IPFS retrieval failed for {ipfs_hash}: {last_error}")
        return {'success': False, 'error': f'Failed to fetch IPFS data: {last_error}'}

    def update_metadata(self, current_hash: Optional[str], updates: Dict[str, Any],
                        venue_id: int, updated_by: str) -> Dict[str, Any]:
        """Merge updates into the current document and pin the next version"""
        current = {
            'version': 0,
        }
        if current_hash:
            result = self.get_metadata(current_hash)
            if result['success'] and isinstance(result['metadata'], dict):
                current = result['metadata']
            else:
                logger.warning(f"Could not retrieve current metadata, starting fresh: {result.get('error')}")

        merged = {
            **current,
            **updates,
            'version': int(current.get('version') or 0) + 1,
            'lastUpdated': datetime.utcnow().isoformat() + 'Z',
            'updatedBy': updated_by,
        }
        # Fields added by upload_metadata are regenerated on each pin
        merged.pop('venueId', None)
        merged.pop('uploadedAt', None)

        return self.upload_metadata(merged, venue_id)

def create_metadata_from_form(form_data: Dict[str, Any], updated_by: str) -> Dict[str, Any]:
    """Build a version-1 metadata document from submitted form fields"""
    metadata = {
        field: form_data.get(field) or default
        for field, default in METADATA_FIELDS.items()
    }
    metadata.update({
        'version': 1,
        'lastUpdated': datetime.utcnow().isoformat() + 'Z',
        'updatedBy': updated_by,
    })
    return metadata
