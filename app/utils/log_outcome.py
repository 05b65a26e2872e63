import json
from datetime import datetime, timezone
from typing import List
from core.logger import logger
from schemas.job_models import MessageOutcome


def log_batch_outcome(
    outcomes: List[MessageOutcome],
    connection_name: str,
    queue_name: str,
    duration_ms: int,
    request_id: str = None
) -> None:
    """
    One structured log line per invocation.
    """
    failed = [item for item in outcomes if not item.outcome.is_success]
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": "sqs_batch_processed",
        "request_id": request_id,
        "connection": connection_name,
        "queue": queue_name,
        "batch_size": len(outcomes),
        "succeeded": len(outcomes) - len(failed),
        "failed": len(failed),
        "failed_message_ids": [item.message_id for item in failed],
        "failure_stages": sorted({item.outcome.error.stage for item in failed}),
        "duration_ms": duration_ms
    }

    if failed:
        log_data["event"] = "sqs_batch_partial_failure"
        logger.warning(json.dumps(log_data))
    else:
        logger.info(json.dumps(log_data))
