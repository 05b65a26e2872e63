# services/result_reporter.py
from typing import Iterable

from schemas.job_models import MessageOutcome
from schemas.sqs_models import BatchItemFailure, BatchResponse


def report(outcomes: Iterable[MessageOutcome]) -> BatchResponse:
    """
    Build the partial batch response. Only failed ids are listed, in
    batch order; omission tells the platform the message succeeded.
    """
    return BatchResponse(
        batch_item_failures=[
            BatchItemFailure(item_identifier=item.message_id)
            for item in outcomes
            if not item.outcome.is_success
        ]
    )
