# services/job_adapter.py
"""
Job Adapter

Bridges one RawMessage to the job system:
1. adapt()   - body -> JobPayload -> Job instance, bound to connection/queue
2. execute() - run the job's handler once and convert the result to an Outcome

There is no retry here. Redelivery and dead-lettering belong to the
queue's redrive policy; the receive count is only reported.
"""

from typing import Optional

from core.config import settings
from core.exceptions import DeserializationError, ExecutionError
from core.logger import logger
from schemas.job_models import ErrorDetail, JobExecutionContext, Outcome
from schemas.sqs_models import RawMessage
from services.job_events import FAILED, PROCESSED, PROCESSING, JobEvents
from services.job_registry import JobRegistry
from services.job_serializer import JobSerializer


class JobAdapter:
    """Deserializes and runs jobs from queue messages"""

    def __init__(
        self,
        registry: JobRegistry,
        serializer: Optional[JobSerializer] = None,
        events: Optional[JobEvents] = None,
        max_receive_count: int = settings.MAX_RECEIVE_COUNT
    ):
        self.registry = registry
        self.serializer = serializer or JobSerializer()
        self.events = events or JobEvents()
        self.max_receive_count = max_receive_count

    # ========================================================================
    # DESERIALIZATION
    # ========================================================================

    def adapt(
        self,
        raw_message: RawMessage,
        connection_name: str,
        queue_name: str
    ) -> JobExecutionContext:
        """
        Build the execution context for a message.

        Raises:
            DeserializationError: unknown job type, corrupted body, version
                mismatch, or the job factory rejected the payload data
        """
        payload = self.serializer.deserialize(raw_message.body)
        job_metadata = {
            "job_name": payload.job,
            "job_uuid": payload.uuid,
            "display_name": payload.display_name,
        }

        try:
            factory = self.registry.resolve(payload.job)
        except DeserializationError as e:
            raise DeserializationError(str(e), job_metadata) from e

        try:
            job = factory(dict(payload.data))
        except Exception as e:
            raise DeserializationError(
                f"Cannot build job {payload.job!r} from payload data: {e}",
                job_metadata
            ) from e

        return JobExecutionContext(
            connection_name=connection_name,
            queue_name=queue_name,
            raw_message=raw_message,
            payload=payload,
            job=job,
        )

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def execute(self, context: JobExecutionContext) -> Outcome:
        """Run the job once. Never raises for job errors."""
        message_id = context.raw_message.id
        receive_count = context.raw_message.approximate_receive_count

        logger.info(
            "Processing job %s (message=%s, receive_count=%d, connection=%s, queue=%s)",
            context.payload.job,
            message_id,
            receive_count,
            context.connection_name,
            context.queue_name,
        )
        if receive_count >= self.max_receive_count:
            logger.warning(
                "Message %s is on delivery %d of %d; the next failure dead-letters it",
                message_id,
                receive_count,
                self.max_receive_count,
            )

        self.events.emit(PROCESSING, context)
        try:
            self._run_handler(context)
        except ExecutionError as e:
            logger.exception(
                f"Job {context.payload.job} failed (message={message_id}): {e}"
            )
            self.events.emit(FAILED, context, e.error_detail)
            return Outcome.failed(e.error_detail)

        logger.info("Job %s succeeded (message=%s)", context.payload.job, message_id)
        self.events.emit(PROCESSED, context)
        return Outcome.succeeded()

    def _run_handler(self, context: JobExecutionContext) -> None:
        try:
            context.job.handle(context)
        except Exception as e:
            detail = ErrorDetail.from_exception(e, "execution", **context.job_metadata)
            raise ExecutionError(f"{detail.error_type}: {detail.message}", detail) from e
