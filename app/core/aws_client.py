# core/aws_client.py
"""
Centralized AWS client factory to ensure proper credential handling.
Inside Lambda the execution role provides credentials; explicit keys are
only picked up for local runs.
"""
import boto3
from botocore.config import Config
from core.config import settings
from core.logger import logger
import os


def get_sqs_client():
    """Get SQS client with proper credentials."""
    try:
        config = Config(
            connect_timeout=settings.SQS_CONNECT_TIMEOUT,
            read_timeout=settings.SQS_READ_TIMEOUT,
            retries={'max_attempts': 3, 'mode': 'standard'}
        )

        # Get credentials from settings (which loads from .env) or environment
        aws_access_key_id = getattr(settings, 'AWS_ACCESS_KEY_ID', None) or os.getenv('AWS_ACCESS_KEY_ID')
        aws_secret_access_key = getattr(settings, 'AWS_SECRET_ACCESS_KEY', None) or os.getenv('AWS_SECRET_ACCESS_KEY')
        aws_session_token = getattr(settings, 'AWS_SESSION_TOKEN', None) or os.getenv('AWS_SESSION_TOKEN')

        client = boto3.client(
            "sqs",
            region_name=settings.SQS_REGION,
            endpoint_url=settings.SQS_ENDPOINT_URL,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            aws_session_token=aws_session_token,  # Optional for temporary credentials
            config=config
        )
        logger.info("SQS client initialized (region=%s)", settings.SQS_REGION)
        return client
    except Exception as e:
        logger.error(f"Failed to initialize SQS client: {str(e)}")
        raise
