# services/queue_handler.py
"""
SQS Queue Handler

One Lambda invocation = one batch:

    event -> decode -> BatchRunner.run -> report -> {"batchItemFailures": [...]}

Only a malformed event escapes as an exception; Lambda then retries the
whole batch. Every per-message failure is reported through
batchItemFailures instead.
"""

import time
from typing import Any, Dict, Optional

from core.exceptions import MalformedBatchError
from core.logger import logger
from services.batch_runner import BatchRunner
from services.message_decoder import decode
from services.result_reporter import report
from utils.log_outcome import log_batch_outcome


class QueueHandler:
    """Lambda handler for SQS batches"""

    def __init__(self, runner: BatchRunner):
        self.runner = runner

    def handle(self, event: Any, context: Optional[Any] = None) -> Dict[str, Any]:
        start_time = time.time()
        request_id = getattr(context, "aws_request_id", None)

        try:
            batch = decode(event)
        except MalformedBatchError as e:
            logger.error(f"Rejecting invocation {request_id}: {e}")
            raise

        remaining_time_ms = getattr(context, "get_remaining_time_in_millis", None)
        outcomes = self.runner.run(batch, remaining_time_ms=remaining_time_ms)

        log_batch_outcome(
            outcomes,
            connection_name=self.runner.queue_context.connection_name,
            queue_name=self.runner.queue_context.queue_name,
            duration_ms=int((time.time() - start_time) * 1000),
            request_id=request_id,
        )
        return report(outcomes).to_lambda()

    __call__ = handle
