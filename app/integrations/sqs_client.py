# app/integrations/sqs_client.py
import hashlib
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import AcknowledgeError
from core.logger import logger
from schemas.sqs_models import RawMessage
from services.job_serializer import JobSerializer


def queue_url_from_arn(arn: str) -> str:
    """
    arn:aws:sqs:us-east-2:123456789012:my-queue
        -> https://sqs.us-east-2.amazonaws.com/123456789012/my-queue
    """
    parts = (arn or "").split(":")
    if len(parts) != 6 or parts[0] != "arn" or parts[2] != "sqs" or not all(parts[3:]):
        raise ValueError(f"Not an SQS queue ARN: {arn!r}")
    _, partition, _, region, account_id, queue_name = parts
    domain = "amazonaws.com.cn" if partition == "aws-cn" else "amazonaws.com"
    return f"https://sqs.{region}.{domain}/{account_id}/{queue_name}"


class SqsAcknowledger:
    """
    Deletes processed messages, one DeleteMessage call per message.

    The queue URL is the configured override, or derived from the
    record's eventSourceARN.
    """

    def __init__(self, client, queue_url: Optional[str] = None):
        self._sqs = client
        self.queue_url = queue_url

    def acknowledge(self, raw_message: RawMessage) -> None:
        try:
            queue_url = self.queue_url or queue_url_from_arn(raw_message.event_source_arn)
        except ValueError as e:
            raise AcknowledgeError(
                f"Cannot resolve queue URL for message {raw_message.id}: {e}",
                message_id=raw_message.id
            ) from e

        try:
            self._sqs.delete_message(QueueUrl=queue_url, ReceiptHandle=raw_message.receipt_token)
        except (ClientError, BotoCoreError) as e:
            raise AcknowledgeError(
                f"DeleteMessage failed for message {raw_message.id}: {e}",
                message_id=raw_message.id
            ) from e


def publish_job(
    client,
    queue_url: str,
    job_name: str,
    data: Optional[Dict[str, Any]] = None,
    *,
    display_name: Optional[str] = None,
    delay_seconds: int = 0,
    fifo: bool = False,
    group_id: Optional[str] = None,
    serializer: Optional[JobSerializer] = None
) -> str:
    """
    Enqueue a job for the worker.
    Assumes body <= 256KB. If larger, send a small body with a pointer to S3 instead.
    """
    body = (serializer or JobSerializer()).serialize(job_name, data, display_name=display_name)
    params = {
        "QueueUrl": queue_url,
        "MessageBody": body,
        "MessageAttributes": {
            "job_name": {"DataType": "String", "StringValue": job_name},
            "content_type": {"DataType": "String", "StringValue": "application/json"},
        },
    }
    if delay_seconds:
        # FIFO queues only support queue-level delay
        if fifo:
            raise ValueError("Per-message delay is not supported on FIFO queues")
        params["DelaySeconds"] = delay_seconds
    if fifo:
        params["MessageGroupId"] = group_id or job_name
        params["MessageDeduplicationId"] = hashlib.sha256(body.encode("utf-8")).hexdigest()

    resp = client.send_message(**params)
    msg_id = resp.get("MessageId", "")
    logger.info("SQS publish ok job=%s msg_id=%s", job_name, msg_id)
    return msg_id
