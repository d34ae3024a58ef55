#!/usr/bin/env python3
"""
CONSOLIDATED UTILITIES
Reusable field cleaning and wallet helpers for the piano venues application
"""

import re
from typing import Optional, List, Any

from scripts.errors import ApiError

ETH_ADDRESS_PATTERN = re.compile(r'^0x[a-fA-F0-9]{40}$')

# Wallet address helpers
def is_valid_address(address: Any) -> bool:
    """Validate Ethereum address format"""
    return isinstance(address, str) and bool(ETH_ADDRESS_PATTERN.match(address))

def normalize_address(address: Any) -> Optional[str]:
    """Lowercase and strip a wallet address; None for empty input"""
    if not address or not isinstance(address, str):
        return None
    cleaned = address.strip().lower()
    return cleaned or None

def addresses_match(first: Any, second: Any) -> bool:
    """Case-insensitive address comparison; empty values never match"""
    first = normalize_address(first)
    second = normalize_address(second)
    return bool(first and second and first == second)

def slugify(value: str) -> str:
    """Lowercase, collapse anything outside [a-z0-9] to single dashes, trim dashes"""
    slug = re.sub(r'[^a-z0-9]', '-', (value or '').lower())
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')

def parse_bool_arg(value: Optional[str]) -> Optional[bool]:
    """Parse an optional 'true'/'false' query argument"""
    if value is None or value == '':
        return None
    return value.strip().lower() == 'true'

# Field cleaning utilities
def clean_text_field(value):
    """Clean text fields by removing markdown formatting and extra whitespace"""
    if not value:
        return None

    # Convert to string and strip whitespace
    cleaned = str(value).strip()

    if not cleaned:
        return None

    # Remove markdown links like [text](url) and keep just the text
    cleaned = re.sub(r'\[([^\]]+)\]\([^)]+\)', r'\1', cleaned)

    # Remove markdown formatting
    cleaned = re.sub(r'\*\*([^*]+)\*\*', r'\1', cleaned)  # Bold
    cleaned = re.sub(r'`([^`]+)`', r'\1', cleaned)        # Code

    # Remove extra whitespace and normalize
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()

    return cleaned if cleaned else None

def clean_multiline_field(value):
    """Clean long-form text (descriptions, bios) keeping paragraph breaks"""
    if not value:
        return None

    cleaned = str(value).strip()
    cleaned = re.sub(r'[ \t]+', ' ', cleaned)
    cleaned = re.sub(r'\n{3,}', '\n\n', cleaned)

    return cleaned if cleaned else None

def clean_url_field(value):
    """Clean URL fields by removing markdown formatting and extracting URLs"""
    if not value:
        return None

    cleaned = str(value).strip()

    if not cleaned:
        return None

    # Extract URL from markdown link format [text](url)
    url_match = re.search(r'\[([^\]]+)\]\(([^)]+)\)', cleaned)
    if url_match:
        return url_match.group(2).strip()

    # Clean up whitespace
    cleaned = re.sub(r'\s+', '', cleaned)

    if cleaned and not re.match(r'^[a-zA-Z][a-zA-Z0-9+.-]*://', cleaned):
        cleaned = f"https://{cleaned}"

    return cleaned if cleaned else None

def clean_phone_field(value):
    """Clean phone number fields"""
    if not value:
        return None

    cleaned = str(value).strip()

    if not cleaned:
        return None

    # Keep digits and common phone punctuation only
    cleaned = re.sub(r'[^0-9+()\-. x]', '', cleaned)

    # Clean up whitespace
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()

    return cleaned if cleaned else None

def clean_numeric_field(value):
    """Clean numeric fields (latitude, longitude, etc.)"""
    if value is None or value == '':
        return None

    if isinstance(value, bool):
        return None

    try:
        return float(str(value).strip())
    except (ValueError, TypeError):
        return None

def clean_integer_field(value):
    """Clean integer fields (ratings, block numbers, etc.)"""
    number = clean_numeric_field(value)
    if number is None:
        return None
    return int(number)

def clean_string_list(value) -> List[str]:
    """Clean a list of tags/amenities; accepts a list or a comma-separated string"""
    if not value:
        return []

    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []

    cleaned = []
    for item in items:
        text = clean_text_field(item)
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned

def clean_bool_field(value) -> Optional[bool]:
    """Accept only real JSON booleans; anything else is None"""
    if isinstance(value, bool):
        return value
    return None

def require_bool(data: dict, field: str, default: Optional[bool] = None) -> Optional[bool]:
    """Read an optional boolean request field; a non-boolean value is a 400"""
    if data.get(field) is None:
        return default
    value = clean_bool_field(data[field])
    if value is None:
        raise ApiError.bad_request('Invalid request', f'{field} must be true or false')
    return value
