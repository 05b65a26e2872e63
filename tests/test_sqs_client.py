from __future__ import annotations

import json

import allure
import boto3
import pytest
from botocore.stub import ANY, Stubber

from conftest import QUEUE_URL, make_event, make_record
from core.exceptions import AcknowledgeError
from integrations.sqs_client import SqsAcknowledger, publish_job, queue_url_from_arn
from services.message_decoder import decode

pytestmark = [
    allure.epic("SQS Bridge"),
    allure.feature("SQS Integration"),
]


@pytest.fixture()
def sqs():
    client = boto3.client(
        "sqs",
        region_name="us-east-2",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _message(message_id: str = "m-1"):
    [message] = decode(make_event(make_record(message_id, "{}", receipt_handle="rh-1")))
    return message


def test_queue_url_from_arn() -> None:
    assert queue_url_from_arn("arn:aws:sqs:us-east-2:123456789012:jobs") == QUEUE_URL
    assert (
        queue_url_from_arn("arn:aws-cn:sqs:cn-north-1:123456789012:jobs.fifo")
        == "https://sqs.cn-north-1.amazonaws.com.cn/123456789012/jobs.fifo"
    )


@pytest.mark.parametrize(
    "arn",
    [None, "", "arn:aws:sns:us-east-2:123456789012:topic", "arn:aws:sqs:us-east-2:jobs"],
)
def test_queue_url_from_invalid_arn(arn) -> None:
    with pytest.raises(ValueError):
        queue_url_from_arn(arn)


def test_acknowledge_deletes_by_receipt_handle(sqs) -> None:
    client, stubber = sqs
    stubber.add_response("delete_message", {}, {"QueueUrl": QUEUE_URL, "ReceiptHandle": "rh-1"})

    SqsAcknowledger(client).acknowledge(_message())


def test_acknowledge_prefers_configured_queue_url(sqs) -> None:
    client, stubber = sqs
    override = "https://sqs.us-east-2.amazonaws.com/123456789012/override"
    stubber.add_response("delete_message", {}, {"QueueUrl": override, "ReceiptHandle": "rh-1"})

    SqsAcknowledger(client, queue_url=override).acknowledge(_message())


def test_acknowledge_wraps_client_errors(sqs) -> None:
    client, stubber = sqs
    stubber.add_client_error(
        "delete_message",
        service_error_code="ReceiptHandleIsInvalid",
        service_message="The receipt handle has expired",
    )

    with pytest.raises(AcknowledgeError) as excinfo:
        SqsAcknowledger(client).acknowledge(_message("m-9"))
    assert excinfo.value.message_id == "m-9"


def test_acknowledge_without_queue_url_or_arn_fails(sqs) -> None:
    client, _ = sqs
    record = make_record("m-1", "{}")
    del record["eventSourceARN"]
    [message] = decode(make_event(record))

    with pytest.raises(AcknowledgeError):
        SqsAcknowledger(client).acknowledge(message)


def test_publish_job_sends_serialized_payload(sqs) -> None:
    client, stubber = sqs
    stubber.add_response(
        "send_message",
        {"MessageId": "msg-1"},
        {"QueueUrl": QUEUE_URL, "MessageBody": ANY, "MessageAttributes": ANY},
    )

    assert publish_job(client, QUEUE_URL, "record", {"value": 1}) == "msg-1"


def test_publish_job_fifo_parameters(sqs) -> None:
    client, stubber = sqs
    captured = {}

    def _capture(params, **kwargs):
        captured.update(params)

    client.meta.events.register("provide-client-params.sqs.SendMessage", _capture)
    stubber.add_response(
        "send_message",
        {"MessageId": "msg-2"},
        {
            "QueueUrl": QUEUE_URL,
            "MessageBody": ANY,
            "MessageAttributes": ANY,
            "MessageGroupId": "tenant-1",
            "MessageDeduplicationId": ANY,
        },
    )

    publish_job(client, QUEUE_URL, "record", {"value": 1}, fifo=True, group_id="tenant-1")

    payload = json.loads(captured["MessageBody"])
    assert payload["job"] == "record"
    assert payload["data"] == {"value": 1}
    assert captured["MessageAttributes"]["job_name"]["StringValue"] == "record"
    assert len(captured["MessageDeduplicationId"]) == 64


def test_publish_job_rejects_delay_on_fifo(sqs) -> None:
    client, _ = sqs
    with pytest.raises(ValueError):
        publish_job(client, QUEUE_URL, "record", fifo=True, delay_seconds=5)
