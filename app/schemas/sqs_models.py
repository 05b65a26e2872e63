# app/schemas/sqs_models.py
from pydantic import BaseModel, ConfigDict, Field, StrictStr
from typing import Dict, List, Optional


# ============================================================================
# PLATFORM EVENT (Lambda SQS event source mapping)
# ============================================================================

class SqsMessageAttribute(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data_type: str = Field("String", alias="dataType")
    string_value: Optional[str] = Field(None, alias="stringValue")
    binary_value: Optional[str] = Field(None, alias="binaryValue")


class SqsRecord(BaseModel):
    """
    One record of the Lambda SQS event.

    Example:
        {
            "messageId": "059f36b4-87a3-44ab-83d2-661975830a7d",
            "receiptHandle": "AQEBwJnKyrHigUMZj6rYigCgxlaS3SLy0a...",
            "body": "{\"job\": \"send_email\", ...}",
            "attributes": {"ApproximateReceiveCount": "1", ...},
            "messageAttributes": {},
            "eventSource": "aws:sqs",
            "eventSourceARN": "arn:aws:sqs:us-east-2:123456789012:my-queue",
            "awsRegion": "us-east-2"
        }
    """
    model_config = ConfigDict(extra="ignore")

    message_id: StrictStr = Field(..., alias="messageId", min_length=1)
    receipt_handle: StrictStr = Field(..., alias="receiptHandle", min_length=1)
    body: StrictStr
    attributes: Dict[str, str] = Field(default_factory=dict)
    message_attributes: Dict[str, SqsMessageAttribute] = Field(
        default_factory=dict, alias="messageAttributes"
    )
    event_source: Optional[str] = Field(None, alias="eventSource")
    event_source_arn: Optional[str] = Field(None, alias="eventSourceARN")
    aws_region: Optional[str] = Field(None, alias="awsRegion")


class SqsEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    records: List[SqsRecord] = Field(..., alias="Records")


# ============================================================================
# DECODED MESSAGE
# ============================================================================

class RawMessage(BaseModel):
    """
    A decoded queue message. Immutable; lives for one invocation.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    body: bytes
    receipt_token: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    message_attributes: Dict[str, str] = Field(default_factory=dict)
    approximate_receive_count: int = 1
    event_source_arn: Optional[str] = None
    aws_region: Optional[str] = None


# ============================================================================
# PLATFORM RESPONSE
# ============================================================================

class BatchItemFailure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_identifier: str = Field(..., alias="itemIdentifier")


class BatchResponse(BaseModel):
    """
    Partial batch response. Ids listed here are redelivered; every
    omitted id counts as processed.
    """
    model_config = ConfigDict(populate_by_name=True)

    batch_item_failures: List[BatchItemFailure] = Field(
        default_factory=list, alias="batchItemFailures"
    )

    @property
    def failed_ids(self) -> List[str]:
        return [f.item_identifier for f in self.batch_item_failures]

    def to_lambda(self) -> Dict[str, List[Dict[str, str]]]:
        return self.model_dump(by_alias=True)
