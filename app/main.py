"""
Lambda entry point for the SQS event source mapping.

Configure the function handler as ``main.handler`` and enable
ReportBatchItemFailures on the event source mapping; without it Lambda
ignores the returned batchItemFailures and retries whole batches.
"""
from typing import Any, Dict, Optional

from core.aws_client import get_sqs_client
from core.config import Settings, settings
from core.logger import logger
from integrations.sqs_client import SqsAcknowledger
from schemas.job_models import QueueContext
from services.batch_runner import BatchRunner
from services.job_adapter import JobAdapter
from services.job_events import JobEvents
from services.job_registry import JobRegistry, job_registry
from services.job_serializer import JobSerializer
from services.queue_handler import QueueHandler

_queue_handler: Optional[QueueHandler] = None


def build_queue_handler(
    config: Settings,
    registry: JobRegistry,
    sqs_client=None,
    events: Optional[JobEvents] = None
) -> QueueHandler:
    """
    Wire the handler from configuration. Called once per process, and
    again on the next invocation if a previous attempt raised.
    """
    client = sqs_client if sqs_client is not None else get_sqs_client()
    registry.load_modules(config.JOB_MODULES)

    queue_context = QueueContext(
        connection_name=config.QUEUE_CONNECTION,
        queue_name=config.QUEUE_NAME,
    )
    adapter = JobAdapter(
        registry=registry,
        serializer=JobSerializer(),
        events=events,
        max_receive_count=config.MAX_RECEIVE_COUNT,
    )
    acknowledger = SqsAcknowledger(client, queue_url=config.SQS_QUEUE_URL)
    runner = BatchRunner(
        adapter=adapter,
        acknowledger=acknowledger,
        queue_context=queue_context,
        ack_failure_policy=config.ACK_FAILURE_POLICY,
        deadline_margin_ms=config.DEADLINE_SAFETY_MARGIN_MS,
    )
    logger.info(
        "Queue handler ready (connection=%s, queue=%s, jobs=%s)",
        queue_context.connection_name,
        queue_context.queue_name,
        registry.names,
    )
    return QueueHandler(runner)


def get_queue_handler() -> QueueHandler:
    global _queue_handler
    if _queue_handler is None:
        _queue_handler = build_queue_handler(settings, job_registry)
    return _queue_handler


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    return get_queue_handler().handle(event, context)
