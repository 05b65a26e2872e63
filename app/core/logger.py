# app/core/logger.py
import logging
from core.config import settings

logger = logging.getLogger("sqs-job-bridge")
logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
logger.propagate = False

# Lambda ships stdout to CloudWatch, so a console handler is all we need
_console = logging.StreamHandler()
_console.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
_console.setFormatter(logging.Formatter(
    fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
))
logger.addHandler(_console)
