# services/message_decoder.py
"""
Turns the Lambda SQS event into an ordered list of RawMessage.

Pure transformation: no I/O, no logging side effects beyond debug lines,
and decoding the same event twice yields equal results.
"""

from typing import Any, Dict, List, Mapping, Set

from pydantic import ValidationError

from core.exceptions import DuplicateMessageError, MalformedBatchError
from core.logger import logger
from schemas.sqs_models import RawMessage, SqsEvent, SqsRecord

SQS_EVENT_SOURCE = "aws:sqs"
RECEIVE_COUNT_ATTRIBUTE = "ApproximateReceiveCount"


def decode(platform_event: Any) -> List[RawMessage]:
    """
    Decode a Lambda SQS event.

    Raises:
        MalformedBatchError: event does not match the SQS batch schema
        DuplicateMessageError: two records share a messageId
    """
    if not isinstance(platform_event, Mapping):
        raise MalformedBatchError(
            f"Expected a mapping event, got {type(platform_event).__name__}"
        )

    try:
        event = SqsEvent.model_validate(dict(platform_event))
    except ValidationError as e:
        raise MalformedBatchError(f"Invalid SQS event: {_summarize(e)}") from e
    except UnicodeError as e:
        raise MalformedBatchError(f"Invalid SQS event: {e}") from e

    messages: List[RawMessage] = []
    seen: Set[str] = set()
    for position, record in enumerate(event.records):
        if record.message_id in seen:
            raise DuplicateMessageError(record.message_id)
        seen.add(record.message_id)
        messages.append(_decode_record(record, position))

    logger.debug("Decoded %d SQS record(s)", len(messages))
    return messages


def _decode_record(record: SqsRecord, position: int) -> RawMessage:
    if record.event_source is not None and record.event_source != SQS_EVENT_SOURCE:
        raise MalformedBatchError(
            f"Record {position} has eventSource={record.event_source!r}, expected {SQS_EVENT_SOURCE!r}"
        )

    try:
        body = record.body.encode("utf-8")
    except UnicodeEncodeError as e:
        raise MalformedBatchError(f"Record {position} body is not valid UTF-8") from e

    return RawMessage(
        id=record.message_id,
        body=body,
        receipt_token=record.receipt_handle,
        attributes=dict(record.attributes),
        message_attributes=_string_attributes(record),
        approximate_receive_count=_receive_count(record.attributes, position),
        event_source_arn=record.event_source_arn,
        aws_region=record.aws_region,
    )


def _receive_count(attributes: Dict[str, str], position: int) -> int:
    raw = attributes.get(RECEIVE_COUNT_ATTRIBUTE)
    if raw is None:
        return 1
    try:
        count = int(raw)
    except ValueError as e:
        raise MalformedBatchError(
            f"Record {position} has non-integer {RECEIVE_COUNT_ATTRIBUTE}={raw!r}"
        ) from e
    if count < 1:
        raise MalformedBatchError(
            f"Record {position} has {RECEIVE_COUNT_ATTRIBUTE}={count}, expected >= 1"
        )
    return count


def _string_attributes(record: SqsRecord) -> Dict[str, str]:
    # Binary attributes are not used by the job payload format
    return {
        name: attr.string_value
        for name, attr in record.message_attributes.items()
        if attr.string_value is not None
    }


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors()[:5]:
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location or '<root>'}: {item.get('msg')}")
    return "; ".join(parts)
