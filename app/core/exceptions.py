# core/exceptions.py
"""
Error taxonomy for batch processing.

Only MalformedBatchError (and its subclasses) ever reaches the Lambda
runtime. Everything else is converted into a per-message outcome by the
batch runner.
"""
from typing import Optional


class QueueBridgeError(Exception):
    """Base class for all bridge errors."""


class MalformedBatchError(QueueBridgeError):
    """The invocation event does not match the SQS batch schema."""


class DuplicateMessageError(MalformedBatchError):
    """Two records in one batch share a messageId."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Duplicate messageId in batch: {message_id}")


class DeserializationError(QueueBridgeError):
    """
    A message body cannot be turned into a runnable job.

    job_metadata holds job_name/job_uuid/display_name when the payload
    itself parsed but the job could not be built from it.
    """

    def __init__(self, message: str, job_metadata: Optional[dict] = None):
        super().__init__(message)
        self.job_metadata = job_metadata or {}


class ExecutionError(QueueBridgeError):
    """
    A job ran and raised. The original exception is kept as __cause__
    and the structured detail is kept for logging.
    """

    def __init__(self, message: str, error_detail=None):
        super().__init__(message)
        self.error_detail = error_detail


class AcknowledgeError(QueueBridgeError):
    """Deleting a processed message from the queue failed."""

    def __init__(self, message: str, message_id: Optional[str] = None):
        super().__init__(message)
        self.message_id = message_id
