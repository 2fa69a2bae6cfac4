"""
Cron entry point for sending due patient communications.

Runs a single processing pass (at most one batch) and exits. Schedule it with
cron or any external scheduler, e.g. every 5 minutes:

    */5 * * * * cd /app/backend && python scripts/process_scheduled_communications.py

Exit status is 0 when the pass completed, even if individual communications
failed (those are recorded on the communication), and 1 when the pass itself
could not run.
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

# Add the parent directory to sys.path to allow imports from src
sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from core.constants import PROCESS_BATCH_SIZE
from core.database import get_db_context
from services.communication_processor import CommunicationProcessor

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Send patient communications that are due.")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=PROCESS_BATCH_SIZE,
        help=f"Maximum communications to send in this run (default: {PROCESS_BATCH_SIZE})",
    )
    args = parser.parse_args(argv)

    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")

    print("Starting scheduled communication processing...")
    try:
        with get_db_context() as db:
            summary = CommunicationProcessor(db).process_due(batch_size=args.batch_size)
    except Exception as e:
        logger.exception(f"Scheduled communication processing failed: {e}")
        print(f"Error during processing: {e}")
        return 1

    sent = sum(1 for result in summary.results if result.success)
    print(f"Processed {summary.processed} communications ({sent} sent, {summary.processed - sent} not sent).")
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(main())
