# services/batch_runner.py
"""
Batch Runner

Processes one SQS batch sequentially, in delivery order:

    for each message: adapt -> execute -> (on success) delete from queue

A failing message never stops the batch. Successful messages are deleted
immediately so that a later failure, which makes the platform redeliver
only the failed ids, cannot bring them back. If the Lambda is killed
mid-batch, anything not yet deleted is redelivered; that is the
at-least-once contract.
"""

from typing import Callable, List, Optional, Protocol, Sequence

from core.config import settings
from core.exceptions import AcknowledgeError, DeserializationError
from core.logger import logger
from schemas.job_models import ErrorDetail, MessageOutcome, Outcome, QueueContext
from schemas.sqs_models import RawMessage
from services.job_adapter import JobAdapter

ACK_BEST_EFFORT = "best_effort"
ACK_REPORT_FAILURE = "report_failure"


class Acknowledger(Protocol):
    def acknowledge(self, raw_message: RawMessage) -> None:
        """Delete the message from the queue. Raises AcknowledgeError."""


class BatchRunner:
    """Runs every message of a batch and acknowledges successes"""

    def __init__(
        self,
        adapter: JobAdapter,
        acknowledger: Acknowledger,
        queue_context: QueueContext,
        ack_failure_policy: str = settings.ACK_FAILURE_POLICY,
        deadline_margin_ms: int = settings.DEADLINE_SAFETY_MARGIN_MS
    ):
        if ack_failure_policy not in (ACK_BEST_EFFORT, ACK_REPORT_FAILURE):
            raise ValueError(f"Unknown ack failure policy: {ack_failure_policy!r}")
        self.adapter = adapter
        self.acknowledger = acknowledger
        self.queue_context = queue_context
        self.ack_failure_policy = ack_failure_policy
        self.deadline_margin_ms = deadline_margin_ms

    def run(
        self,
        batch: Sequence[RawMessage],
        connection_name: Optional[str] = None,
        queue_name: Optional[str] = None,
        remaining_time_ms: Optional[Callable[[], int]] = None
    ) -> List[MessageOutcome]:
        """
        Process the batch and return one outcome per message, in input order.

        remaining_time_ms is the Lambda context's get_remaining_time_in_millis.
        Once it drops below the safety margin, the rest of the batch is
        failed without execution so it is redelivered instead of being cut
        off mid-job.
        """
        connection_name = connection_name or self.queue_context.connection_name
        queue_name = queue_name or self.queue_context.queue_name

        outcomes: List[MessageOutcome] = []
        out_of_time = False
        for raw_message in batch:
            if not out_of_time and remaining_time_ms is not None:
                remaining = remaining_time_ms()
                if remaining < self.deadline_margin_ms:
                    out_of_time = True
                    logger.warning(
                        "Invocation deadline near (%d ms left); skipping %d remaining message(s)",
                        remaining,
                        len(batch) - len(outcomes),
                    )

            if out_of_time:
                outcome = Outcome.failed(ErrorDetail(
                    error_type="DeadlineExceeded",
                    message="Skipped: invocation deadline reached before the job started",
                    stage="deadline",
                    receive_count=raw_message.approximate_receive_count,
                ))
            else:
                outcome = self._process(raw_message, connection_name, queue_name)

            outcomes.append(MessageOutcome(message_id=raw_message.id, outcome=outcome))

        return outcomes

    def _process(self, raw_message: RawMessage, connection_name: str, queue_name: str) -> Outcome:
        try:
            context = self.adapter.adapt(raw_message, connection_name, queue_name)
        except DeserializationError as e:
            logger.error(f"Cannot deserialize message {raw_message.id}: {e}")
            return Outcome.failed(ErrorDetail.from_exception(
                e,
                "deserialization",
                receive_count=raw_message.approximate_receive_count,
                **e.job_metadata
            ))
        except Exception as e:
            logger.exception(f"Unexpected error adapting message {raw_message.id}: {e}")
            return Outcome.failed(ErrorDetail.from_exception(
                e, "deserialization", receive_count=raw_message.approximate_receive_count
            ))

        try:
            outcome = self.adapter.execute(context)
        except Exception as e:
            # execute() converts job errors itself; this only catches adapter bugs
            logger.exception(f"Unexpected error executing message {raw_message.id}: {e}")
            outcome = Outcome.failed(ErrorDetail.from_exception(e, "execution", **context.job_metadata))

        if outcome.is_success:
            return self._acknowledge(raw_message, context.job_metadata)
        return outcome

    def _acknowledge(self, raw_message: RawMessage, job_metadata: dict) -> Outcome:
        try:
            self.acknowledger.acknowledge(raw_message)
        except AcknowledgeError as e:
            logger.error(
                f"Job succeeded but deleting message {raw_message.id} failed; "
                f"it may be processed again: {e}"
            )
            return self._ack_failure_outcome(e, job_metadata)
        except Exception as e:
            logger.exception(
                f"Job succeeded but acknowledger raised for message {raw_message.id}; "
                f"it may be processed again: {e}"
            )
            return self._ack_failure_outcome(e, job_metadata)

        logger.debug("Deleted message %s", raw_message.id)
        return Outcome.succeeded()

    def _ack_failure_outcome(self, error: Exception, job_metadata: dict) -> Outcome:
        if self.ack_failure_policy == ACK_REPORT_FAILURE:
            return Outcome.failed(ErrorDetail.from_exception(error, "acknowledge", **job_metadata))
        return Outcome.succeeded()
