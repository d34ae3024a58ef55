#!/usr/bin/env python3
"""
Blockchain event sync for the rewards contract.

Two stages, both safe to re-run:

1. EventIndexer copies contract logs into ``blockchain_events``. Logs are
   keyed by (transaction_hash, log_index) so re-reading a block range never
   duplicates rows, and only blocks ``SYNC_CONFIRMATIONS`` deep are read so
   a shallow reorg cannot leave orphaned events behind. The last indexed
   block is kept in ``sync_checkpoints`` and advanced once per committed chunk.
2. EventProcessor applies pending events to venues, users and payments in
   block order. A failing event keeps its error and is retried on later runs
   until MAX_ATTEMPTS is reached.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from config.models import db, BlockchainEvent, SyncCheckpoint, Payment
from scripts.rewards_contract import RewardsContractClient, TRACKED_EVENTS
from scripts.user_service import find_or_create_user, update_user_blockchain_cache
from scripts.utils import normalize_address
from scripts.venue_service import mark_venue_as_verified

sync_logger = logging.getLogger('sync')

WEI_PER_TOKEN = 10 ** 18
MAX_ATTEMPTS = 5

def _token_amount(raw) -> float:
    return int(raw or 0) / WEI_PER_TOKEN

class EventIndexer:
    """Copies confirmed contract logs into the database"""

    # One indexing run per process; a second caller skips instead of racing
    _lock = threading.Lock()

    def __init__(self, client: RewardsContractClient, confirmations: int = 5,
                 block_chunk: int = 2000, start_block: int = 0):
        self.client = client
        self.confirmations = max(confirmations, 0)
        self.block_chunk = max(block_chunk, 1)
        self.start_block = max(start_block, 0)

    @classmethod
    def from_config(cls, app_config) -> 'EventIndexer':
        return cls(
            RewardsContractClient.from_config(app_config),
            confirmations=app_config.get('SYNC_CONFIRMATIONS', 5),
            block_chunk=app_config.get('SYNC_BLOCK_CHUNK', 2000),
            start_block=app_config.get('SYNC_START_BLOCK', 0),
        )

    def get_checkpoint(self) -> SyncCheckpoint:
        address = self.client.contract_address.lower()
        checkpoint = SyncCheckpoint.query.filter_by(contract_address=address).first()
        if checkpoint is None:
            db.session.add(SyncCheckpoint(contract_address=address, last_block=self.start_block - 1))
            try:
                db.session.commit()
            except IntegrityError:
                # Created by another sync process in the meantime
                db.session.rollback()
            checkpoint = SyncCheckpoint.query.filter_by(contract_address=address).one()
        return checkpoint

    def record_event(self, payload: Dict[str, Any]) -> bool:
        """Insert one decoded log; returns False when it was already recorded"""
        exists = BlockchainEvent.query.filter_by(
            transaction_hash=payload['transaction_hash'],
            log_index=payload['log_index'],
        ).first()
        if exists:
            return False

        db.session.add(BlockchainEvent(**payload))
        return True

    def _record_chunk(self, from_block: int, to_block: int) -> int:
        indexed = 0
        for event_name in TRACKED_EVENTS:
            for payload in self.client.get_events(event_name, from_block, to_block):
                if self.record_event(payload):
                    indexed += 1
        return indexed

    def _index_chunk(self, checkpoint: SyncCheckpoint, from_block: int, to_block: int) -> int:
        """Record one block range and advance the checkpoint in the same commit"""
        try:
            indexed = self._record_chunk(from_block, to_block)
            checkpoint.last_block = to_block
            db.session.commit()
            return indexed
        except IntegrityError:
            # Another process committed some of these logs first; the
            # existence checks see them on the second pass
            db.session.rollback()
            sync_logger.warning(f"Blocks {from_block}-{to_block} were partly indexed elsewhere, re-recording")
            indexed = self._record_chunk(from_block, to_block)
            checkpoint.last_block = max(checkpoint.last_block, to_block)
            db.session.commit()
            return indexed

    def index_new_events(self) -> Dict[str, Any]:
        if self.client.is_development:
            sync_logger.debug("Rewards contract not configured, skipping indexing")
            return {'indexed': 0, 'skipped': True}

        if not self._lock.acquire(blocking=False):
            sync_logger.info("Event indexing already in progress, skipping...")
            return {'indexed': 0, 'skipped': True}

        try:
            checkpoint = self.get_checkpoint()
            safe_head = self.client.get_block_number() - self.confirmations
            from_block = checkpoint.last_block + 1
            indexed = 0

            while from_block <= safe_head:
                to_block = min(from_block + self.block_chunk - 1, safe_head)
                indexed += self._index_chunk(checkpoint, from_block, to_block)
                sync_logger.info(f"Indexed blocks {from_block}-{to_block} ({indexed} new events so far)")
                from_block = to_block + 1

            return {'indexed': indexed, 'lastBlock': checkpoint.last_block, 'skipped': False}
        finally:
            self._lock.release()

class EventProcessor:
    """Applies recorded blockchain events to application state"""

    def __init__(self):
        self._lock = threading.Lock()
        self._is_processing = False

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    def process_events(self, batch_size: int = 10) -> Dict[str, Any]:
        if not self._lock.acquire(blocking=False):
            sync_logger.info("Event processing already in progress, skipping...")
            return {'processed': 0, 'failed': 0, 'skipped': True}

        self._is_processing = True
        sync_logger.info("Processing blockchain events...")
        try:
            return self._process_pending(batch_size)
        finally:
            self._is_processing = False
            self._lock.release()

    def _process_pending(self, batch_size: int) -> Dict[str, Any]:
        pending_ids = [
            event_id for (event_id,) in db.session.query(BlockchainEvent.id)
            .filter(BlockchainEvent.processed.is_(False), BlockchainEvent.attempts < MAX_ATTEMPTS)
            .order_by(BlockchainEvent.block_number.asc(), BlockchainEvent.log_index.asc())
            .limit(batch_size)
            .all()
        ]

        processed = failed = 0
        for event_id in pending_ids:
            event = db.session.get(BlockchainEvent, event_id)
            try:
                self.apply_event(event)
                event.processed = True
                event.processed_at = datetime.utcnow()
                event.attempts += 1
                event.error = None
                db.session.commit()
                processed += 1
            except Exception as e:
                db.session.rollback()
                sync_logger.error(f"Failed to process event {event_id}: {e}", exc_info=True)
                event = db.session.get(BlockchainEvent, event_id)
                event.attempts += 1
                event.error = str(e)[:1000]
                db.session.commit()
                failed += 1

        sync_logger.info(f"Event processing completed: {processed} processed, {failed} failed")
        return {'processed': processed, 'failed': failed, 'skipped': False}

    def apply_event(self, event: BlockchainEvent):
        data = event.event_data or {}
        handler = EVENT_HANDLERS.get(event.event_type)
        if handler is None:
            sync_logger.warning(f"No handler for event type {event.event_type}, marking processed")
            return
        handler(event, data)

def _apply_venue_verified(event: BlockchainEvent, data: Dict[str, Any]):
    if data.get('approved') and data.get('venueHash'):
        updated = mark_venue_as_verified(data['venueHash'])
        sync_logger.info(f"VenueVerified {data['venueHash']}: {updated} venue(s) marked verified")

def _apply_new_user_rewarded(event: BlockchainEvent, data: Dict[str, Any]):
    if not data.get('user'):
        return
    user = find_or_create_user(data['user'])
    update_user_blockchain_cache(
        user.wallet_address,
        has_claimed_new_user_reward=True,
        total_rewards_earned=(user.total_rewards_earned or 0.0) + _token_amount(data.get('amount')),
    )

def _apply_scout_rewarded(event: BlockchainEvent, data: Dict[str, Any]):
    if not data.get('scout') or not data.get('amount'):
        return
    user = find_or_create_user(data['scout'])
    update_user_blockchain_cache(
        user.wallet_address,
        total_rewards_earned=(user.total_rewards_earned or 0.0) + _token_amount(data['amount']),
    )

def _apply_payment_tracked(event: BlockchainEvent, data: Dict[str, Any]):
    if Payment.query.filter_by(transaction_hash=event.transaction_hash).first():
        return
    db.session.add(Payment(
        from_address=normalize_address(data.get('from')),
        to_address=normalize_address(data.get('to')),
        amount=_token_amount(data.get('amount')),
        transaction_hash=event.transaction_hash,
        block_number=event.block_number,
        block_timestamp=event.block_timestamp,
        payment_type='direct_transfer',
        memo=data.get('memo') or '',
        payment_method='web3',
        status='CONFIRMED',
    ))

EVENT_HANDLERS = {
    'VenueVerified': _apply_venue_verified,
    'NewUserRewarded': _apply_new_user_rewarded,
    'ScoutRewarded': _apply_scout_rewarded,
    'PaymentTracked': _apply_payment_tracked,
}

# Singleton instance
event_processor = EventProcessor()

def get_event_stats() -> Dict[str, Any]:
    rows = (db.session.query(BlockchainEvent.event_type, BlockchainEvent.processed,
                             db.func.count(BlockchainEvent.id))
            .group_by(BlockchainEvent.event_type, BlockchainEvent.processed)
            .all())

    stats = {
        'totalEvents': 0,
        'processedEvents': 0,
        'pendingEvents': 0,
        'failedEvents': BlockchainEvent.query.filter(
            BlockchainEvent.processed.is_(False),
            BlockchainEvent.attempts >= MAX_ATTEMPTS,
        ).count(),
        'eventTypes': {},
    }
    for event_type, processed, count in rows:
        stats['totalEvents'] += count
        if processed:
            stats['processedEvents'] += count
        else:
            stats['pendingEvents'] += count
        stats['eventTypes'][event_type] = stats['eventTypes'].get(event_type, 0) + count
    return stats

def get_sync_status() -> Dict[str, Any]:
    """Current sync status for the dashboard"""
    app_config = current_app.config
    address = normalize_address(app_config.get('REWARDS_CONTRACT_ADDRESS'))
    checkpoint: Optional[SyncCheckpoint] = None
    if address:
        checkpoint = SyncCheckpoint.query.filter_by(contract_address=address).first()

    return {
        'stats': get_event_stats(),
        'isProcessing': event_processor.is_processing,
        'contractConfigured': bool(address),
        'checkpoint': checkpoint.to_dict() if checkpoint else None,
    }

def trigger_manual_sync() -> Dict[str, Any]:
    """Index new logs then process pending events; errors propagate"""
    app_config = current_app.config
    indexing = EventIndexer.from_config(app_config).index_new_events()
    processing = event_processor.process_events(app_config.get('SYNC_BATCH_SIZE', 10))
    return {'indexing': indexing, 'processing': processing}

def run_event_processing_job() -> Optional[Dict[str, Any]]:
    """Scheduled entry point; failures are logged, never raised"""
    sync_logger.info("Starting scheduled blockchain event processing job...")
    try:
        result = trigger_manual_sync()
        stats = get_event_stats()
        sync_logger.info(f"Event processing statistics: {stats}")
        return {**result, 'stats': stats}
    except Exception as e:
        db.session.rollback()
        sync_logger.error(f"Event processing job failed: {e}", exc_info=True)
        return None

def start_background_sync(app) -> threading.Thread:
    """Run trigger_manual_sync on a daemon thread and log its outcome"""
    def _run():
        with app.app_context():
            try:
                result = trigger_manual_sync()
                sync_logger.info(f"Manual event processing completed: {result}")
            except Exception as e:
                db.session.rollback()
                sync_logger.error(f"Manual event processing failed: {e}", exc_info=True)

    thread = threading.Thread(target=_run, name='manual-sync', daemon=True)
    thread.start()
    return thread
