# services/job_events.py
from typing import Callable, Dict, List

from core.logger import logger

PROCESSING = "processing"
PROCESSED = "processed"
FAILED = "failed"

JobListener = Callable[..., None]


class JobEvents:
    """
    Lifecycle listeners around job execution.

    processing(context)        before handle()
    processed(context)         after handle() returned
    failed(context, detail)    after handle() raised

    Listeners are for observability only. A listener that raises is
    logged and skipped, and never changes the message outcome.
    """

    def __init__(self):
        self._listeners: Dict[str, List[JobListener]] = {
            PROCESSING: [],
            PROCESSED: [],
            FAILED: [],
        }

    def listen(self, event: str, listener: JobListener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown job event {event!r}")
        self._listeners[event].append(listener)

    def on_processing(self, listener: JobListener) -> JobListener:
        self.listen(PROCESSING, listener)
        return listener

    def on_processed(self, listener: JobListener) -> JobListener:
        self.listen(PROCESSED, listener)
        return listener

    def on_failed(self, listener: JobListener) -> JobListener:
        self.listen(FAILED, listener)
        return listener

    def emit(self, event: str, *args) -> None:
        for listener in self._listeners[event]:
            try:
                listener(*args)
            except Exception as e:
                logger.error(
                    f"Job event listener {getattr(listener, '__name__', listener)!r} "
                    f"failed on {event}: {e}"
                )
