#!/usr/bin/env python3
"""
Cronjob script to index and process rewards contract events.

Reads confirmed contract logs into the database, then applies pending events
to venues, users and payments. Safe to run repeatedly (e.g., every 5 minutes).

Usage:
    source venv/bin/activate && python scripts/cron_sync_events.py
"""

import sys
import logging
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Setup logging
log_dir = project_root / 'logs'
log_dir.mkdir(exist_ok=True)

log_file = log_dir / f'cron_sync_events_{datetime.now().strftime("%Y%m%d")}.log'
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_file),
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

def main():
    """Run one sync pass inside the app context"""
    from app import app, db
    from scripts.blockchain_sync import run_event_processing_job

    start_time = datetime.now()
    logger.info("=" * 80)
    logger.info(f"Starting blockchain sync cronjob - {start_time.strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 80)

    with app.app_context():
        db.create_all()
        result = run_event_processing_job()

    duration = datetime.now() - start_time
    if result is None:
        logger.error(f"Blockchain sync failed after {duration}")
        return 1

    logger.info("=" * 80)
    logger.info("SYNC SUMMARY")
    logger.info("=" * 80)
    logger.info(f"   Indexing: {result['indexing']}")
    logger.info(f"   Processing: {result['processing']}")
    logger.info(f"   Pending events: {result['stats']['pendingEvents']}")
    logger.info(f"   Failed events: {result['stats']['failedEvents']}")
    logger.info(f"   Duration: {duration}")
    logger.info("=" * 80)
    return 0

if __name__ == '__main__':
    sys.exit(main())
