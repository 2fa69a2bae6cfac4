"""
Scheduled communication processor.

Sends every communication that has become due. Invoked by the
process-scheduled endpoint and by the cron script; each invocation is a
single pass over at most one batch.
"""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.constants import PROCESS_BATCH_SIZE
from services.communication_dispatcher import CommunicationDispatcher
from services.communication_store import CommunicationStore
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class DispatchResult(BaseModel):
    """Outcome of dispatching one communication."""

    id: str
    success: bool


class ProcessingSummary(BaseModel):
    """Outcome of one processing pass."""

    processed: int
    results: List[DispatchResult]


class CommunicationProcessor:
    """Service for processing due communications."""

    def __init__(self, db: Session, dispatcher: Optional[CommunicationDispatcher] = None):
        self.db = db
        self.store = CommunicationStore(db)
        self.dispatcher = dispatcher or CommunicationDispatcher(db)

    def process_due(
        self,
        now: Optional[datetime] = None,
        batch_size: int = PROCESS_BATCH_SIZE,
    ) -> ProcessingSummary:
        """
        Dispatch communications that are due.

        Loads at most `batch_size` scheduled communications with
        scheduled_for <= now (oldest first) and dispatches them one at a time.
        An unexpected error on one communication is logged and reported as
        unsuccessful without stopping the rest of the batch.

        Args:
            now: Cut-off time (defaults to the current UTC time)
            batch_size: Maximum number of communications handled in this pass

        Returns:
            ProcessingSummary with one result per communication attempted
        """
        current_time = now or utc_now()
        due = self.store.list_due_before(current_time, batch_size)

        if not due:
            logger.info("No scheduled communications due")
            return ProcessingSummary(processed=0, results=[])

        # Capture ids up front; dispatch commits and may roll back the session
        due_ids = [communication.id for communication in due]
        logger.info(f"Processing {len(due_ids)} due communications")

        results: List[DispatchResult] = []
        for communication_id in due_ids:
            try:
                success = self.dispatcher.dispatch(communication_id)
            except Exception as e:
                logger.exception(f"Failed to process communication {communication_id}: {e}")
                self.db.rollback()
                success = False
            results.append(DispatchResult(id=communication_id, success=success))

        sent_count = sum(1 for result in results if result.success)
        logger.info(f"Processed {len(results)} communications: {sent_count} sent, {len(results) - sent_count} not sent")
        return ProcessingSummary(processed=len(results), results=results)
