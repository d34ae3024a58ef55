#!/usr/bin/env python3
"""
Rewards contract client for the Celo network.

Reads verifier/reward status, computes venue hashes and pulls event logs
for the sync job. With no contract address configured the client runs in
development mode: reads return defaults and no RPC calls are made.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from web3 import Web3

logger = logging.getLogger('sync')

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'

TRACKED_EVENTS = ('VenueVerified', 'PaymentTracked', 'NewUserRewarded', 'ScoutRewarded')

REWARDS_ABI = [
    {
        "inputs": [{"name": "", "type": "address"}],
        "name": "authorizedVerifiers",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "", "type": "address"}],
        "name": "hasClaimedNewUserReward",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "venueHash", "type": "bytes32"}],
        "name": "isVenueVerified",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "user", "type": "address"},
            {"indexed": False, "name": "amount", "type": "uint256"}
        ],
        "name": "NewUserRewarded",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "scout", "type": "address"},
            {"indexed": True, "name": "venueHash", "type": "bytes32"},
            {"indexed": False, "name": "amount", "type": "uint256"}
        ],
        "name": "ScoutRewarded",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "venueHash", "type": "bytes32"},
            {"indexed": True, "name": "verifier", "type": "address"},
            {"indexed": False, "name": "approved", "type": "bool"}
        ],
        "name": "VenueVerified",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": False, "name": "amount", "type": "uint256"},
            {"indexed": False, "name": "memo", "type": "string"}
        ],
        "name": "PaymentTracked",
        "type": "event"
    }
]

def generate_venue_hash(name: str, city: str, scout_address: str) -> str:
    """keccak256(abi.encodePacked(name, city, scout)) as 0x-prefixed hex"""
    digest = Web3.solidity_keccak(
        ['string', 'string', 'address'],
        [name, city, Web3.to_checksum_address(scout_address)]
    )
    return Web3.to_hex(digest)

def _to_json_value(value: Any) -> Any:
    """Convert decoded log arguments to JSON-safe values"""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        # uint256 amounts overflow JSON integer columns in some backends
        return str(value)
    if isinstance(value, str) and Web3.is_address(value):
        return value.lower()
    return value

class RewardsContractClient:
    """Service for reading the rewards contract"""

    def __init__(self, rpc_url: str, contract_address: Optional[str], timeout: int = 30):
        self.rpc_url = rpc_url
        self.contract_address = (contract_address or '').strip()
        self.is_development = (not self.contract_address or
                               self.contract_address.lower() == ZERO_ADDRESS)
        self.w3 = None
        self.contract = None

        if self.is_development:
            logger.debug("Rewards contract not configured - running in development mode")
            return

        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': timeout}))
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(self.contract_address),
            abi=REWARDS_ABI
        )

    @classmethod
    def from_config(cls, app_config) -> 'RewardsContractClient':
        return cls(app_config.get('CELO_RPC_URL'), app_config.get('REWARDS_CONTRACT_ADDRESS'))

    def is_authorized_verifier(self, address: str) -> bool:
        if self.is_development:
            return False
        return bool(self.contract.functions.authorizedVerifiers(
            Web3.to_checksum_address(address)).call())

    def has_claimed_new_user_reward(self, address: str) -> bool:
        if self.is_development:
            return False
        return bool(self.contract.functions.hasClaimedNewUserReward(
            Web3.to_checksum_address(address)).call())

    def get_block_number(self) -> int:
        if self.is_development:
            return 0
        return self.w3.eth.block_number

    def get_events(self, event_name: str, from_block: int, to_block: int) -> List[Dict[str, Any]]:
        """Fetch and decode one event type over an inclusive block range"""
        if self.is_development:
            return []

        event = getattr(self.contract.events, event_name)
        logs = event().get_logs(from_block=from_block, to_block=to_block)

        block_times = {}
        decoded = []
        for log in logs:
            block_number = log['blockNumber']
            if block_number not in block_times:
                block = self.w3.eth.get_block(block_number)
                block_times[block_number] = datetime.utcfromtimestamp(block['timestamp'])

            decoded.append({
                'event_type': event_name,
                'contract_address': self.contract_address.lower(),
                'transaction_hash': Web3.to_hex(log['transactionHash']),
                'log_index': log['logIndex'],
                'block_number': block_number,
                'block_timestamp': block_times[block_number],
                'event_data': {key: _to_json_value(value) for key, value in log['args'].items()}
            })
        return decoded
