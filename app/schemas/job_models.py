# schemas/job_models.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, Literal, Optional
from enum import Enum

from schemas.sqs_models import RawMessage

JOB_PAYLOAD_VERSION = 1


class OutcomeStatus(str, Enum):
    """Per-message processing result"""
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class QueueContext(BaseModel):
    """
    Connection profile and logical queue name for this process.
    Built once at cold start.
    """
    model_config = ConfigDict(frozen=True)

    connection_name: str = Field(..., min_length=1)
    queue_name: str = Field(..., min_length=1)


class JobPayload(BaseModel):
    """
    Job payload carried in a message body.

    Produced by JobSerializer.serialize on the dispatching side.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "uuid": "3f1c1a0e-6a43-4c55-9f1f-0a2b7d8f4e21",
                "job": "send_welcome_email",
                "displayName": "SendWelcomeEmail",
                "data": {"user_id": 42},
                "version": 1,
                "pushedAt": 1760000000000
            }
        },
    )

    uuid: str = Field(..., min_length=1)
    job: str = Field(..., min_length=1, description="Registered job type identifier")
    display_name: Optional[str] = Field(None, alias="displayName")
    data: Dict[str, Any] = Field(default_factory=dict)
    version: int = JOB_PAYLOAD_VERSION
    pushed_at_ms: Optional[int] = Field(None, alias="pushedAt")


class ErrorDetail(BaseModel):
    """
    Why a message failed. Logged, never re-raised.
    """
    error_type: str
    message: str
    stage: Literal["deserialization", "execution", "deadline", "acknowledge"]
    job_name: Optional[str] = None
    job_uuid: Optional[str] = None
    display_name: Optional[str] = None
    receive_count: Optional[int] = None

    @classmethod
    def from_exception(cls, exc: BaseException, stage: str, **metadata) -> "ErrorDetail":
        return cls(
            error_type=type(exc).__name__,
            message=str(exc),
            stage=stage,
            **metadata
        )


class Outcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    error: Optional[ErrorDetail] = None

    @model_validator(mode="after")
    def _error_only_on_failure(self) -> "Outcome":
        if (self.status == OutcomeStatus.FAILED) != (self.error is not None):
            raise ValueError("error detail is required for failed outcomes and forbidden otherwise")
        return self

    @classmethod
    def succeeded(cls) -> "Outcome":
        return cls(status=OutcomeStatus.SUCCEEDED)

    @classmethod
    def failed(cls, error: ErrorDetail) -> "Outcome":
        return cls(status=OutcomeStatus.FAILED, error=error)

    @property
    def is_success(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class MessageOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_id: str
    outcome: Outcome


class JobExecutionContext(BaseModel):
    """
    Everything a job needs to run one message. Not persisted.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    connection_name: str
    queue_name: str
    raw_message: RawMessage
    payload: JobPayload
    job: Any

    @property
    def job_metadata(self) -> Dict[str, Any]:
        return {
            "job_name": self.payload.job,
            "job_uuid": self.payload.uuid,
            "display_name": self.payload.display_name,
            "receive_count": self.raw_message.approximate_receive_count,
        }
