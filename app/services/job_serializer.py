# services/job_serializer.py
import json
import time
import uuid
from typing import Any, Dict, Optional

from pydantic import ValidationError

from core.exceptions import DeserializationError
from schemas.job_models import JOB_PAYLOAD_VERSION, JobPayload


class JobSerializer:
    """Job payload <-> message body"""

    def __init__(self, version: int = JOB_PAYLOAD_VERSION):
        self.version = version

    def serialize(
        self,
        job_name: str,
        data: Optional[Dict[str, Any]] = None,
        display_name: Optional[str] = None
    ) -> str:
        payload = JobPayload(
            uuid=str(uuid.uuid4()),
            job=job_name,
            display_name=display_name or job_name,
            data=data or {},
            version=self.version,
            pushed_at_ms=int(time.time() * 1000),
        )
        return json.dumps(
            payload.model_dump(by_alias=True),
            separators=(",", ":"),
            ensure_ascii=False
        )

    def deserialize(self, body: bytes) -> JobPayload:
        """
        Parse a message body into a JobPayload.

        Raises:
            DeserializationError: body is not a well-formed payload of the
                supported version
        """
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError("Message body is not valid UTF-8") from e

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise DeserializationError(f"Message body is not valid JSON: {e.msg}") from e

        if not isinstance(raw, dict):
            raise DeserializationError(
                f"Job payload must be a JSON object, got {type(raw).__name__}"
            )

        try:
            payload = JobPayload.model_validate(raw)
        except ValidationError as e:
            raise DeserializationError(
                f"Invalid job payload: {e.error_count()} validation error(s)"
            ) from e

        if payload.version != self.version:
            raise DeserializationError(
                f"Unsupported job payload version {payload.version} (expected {self.version})"
            )
        return payload
