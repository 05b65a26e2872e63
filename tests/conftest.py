"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import Any

import pytest

from core.exceptions import AcknowledgeError
from schemas.job_models import QueueContext
from services.batch_runner import BatchRunner
from services.job_adapter import JobAdapter
from services.job_events import JobEvents
from services.job_registry import Job, JobRegistry
from services.job_serializer import JobSerializer

QUEUE_ARN = "arn:aws:sqs:us-east-2:123456789012:jobs"
QUEUE_URL = "https://sqs.us-east-2.amazonaws.com/123456789012/jobs"


def make_record(
    message_id: str,
    body: str,
    *,
    receive_count: str | None = "1",
    receipt_handle: str | None = None,
) -> dict[str, Any]:
    attributes = {"SentTimestamp": "1545082649183"}
    if receive_count is not None:
        attributes["ApproximateReceiveCount"] = receive_count
    return {
        "messageId": message_id,
        "receiptHandle": receipt_handle or f"receipt-{message_id}",
        "body": body,
        "attributes": attributes,
        "messageAttributes": {
            "job_name": {"stringValue": "record", "dataType": "String"},
        },
        "md5OfBody": "e4e68fb7bd0e697a0ae8f1bb342846b3",
        "eventSource": "aws:sqs",
        "eventSourceARN": QUEUE_ARN,
        "awsRegion": "us-east-2",
    }


def make_event(*records: dict[str, Any]) -> dict[str, Any]:
    return {"Records": list(records)}


def job_body(job_name: str, data: dict[str, Any] | None = None) -> str:
    return JobSerializer().serialize(job_name, data)


CORRUPTED_BODY = '{"job": "record", "uuid": '


class FakeAcknowledger:
    """Records DeleteMessage calls; fails for the configured ids."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.acknowledged: list[str] = []
        self.receipts: list[str] = []

    def acknowledge(self, raw_message) -> None:
        if raw_message.id in self.fail_for:
            raise AcknowledgeError("simulated delete failure", message_id=raw_message.id)
        self.acknowledged.append(raw_message.id)
        self.receipts.append(raw_message.receipt_token)


@pytest.fixture()
def executed() -> list[Any]:
    return []


@pytest.fixture()
def registry(executed) -> JobRegistry:
    registry = JobRegistry()

    class RecordJob(Job):
        job_name = "record"

        def __init__(self, value: Any = None) -> None:
            self.value = value

        def handle(self, context) -> None:
            executed.append((context.raw_message.id, self.value))

    class ExplodeJob(Job):
        job_name = "explode"

        def __init__(self, reason: str = "boom") -> None:
            self.reason = reason

        def handle(self, context) -> None:
            executed.append((context.raw_message.id, "explode"))
            raise RuntimeError(self.reason)

    registry.job()(RecordJob)
    registry.job()(ExplodeJob)
    return registry


@pytest.fixture()
def events() -> JobEvents:
    return JobEvents()


@pytest.fixture()
def adapter(registry, events) -> JobAdapter:
    return JobAdapter(registry=registry, serializer=JobSerializer(), events=events, max_receive_count=5)


@pytest.fixture()
def acknowledger() -> FakeAcknowledger:
    return FakeAcknowledger()


@pytest.fixture()
def queue_context() -> QueueContext:
    return QueueContext(connection_name="sqs", queue_name="jobs")


@pytest.fixture()
def runner(adapter, acknowledger, queue_context) -> BatchRunner:
    return BatchRunner(
        adapter=adapter,
        acknowledger=acknowledger,
        queue_context=queue_context,
        ack_failure_policy="best_effort",
        deadline_margin_ms=1000,
    )


@pytest.fixture()
def record_body() -> str:
    return json.dumps({"uuid": "u-1", "job": "record", "data": {"value": 1}, "version": 1})
