# core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional, List, Literal


class Settings(BaseSettings):
    """
    Centralized worker configuration.
    Loaded once per Lambda process; values are never mutated afterwards.
    """

    # ------------------------------------------------------------
    # Project / Runtime
    # ------------------------------------------------------------
    PROJECT_NAME: str = "SQS Job Bridge"
    DEBUG: bool = False

    # ------------------------------------------------------------
    # AWS Core
    # ------------------------------------------------------------
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_SESSION_TOKEN: Optional[str] = None

    # ------------------------------------------------------------
    # Messaging (SQS)
    # ------------------------------------------------------------
    SQS_REGION: str = "us-east-1"
    SQS_ENDPOINT_URL: Optional[str] = Field(
        default=None,
        description="Custom SQS endpoint (LocalStack / ElasticMQ); AWS default when unset"
    )
    SQS_QUEUE_URL: Optional[str] = Field(
        default=None,
        description=(
            "Queue URL used for deletes and dispatch. When unset, deletes "
            "derive the URL from each record's eventSourceARN"
        )
    )
    SQS_CONNECT_TIMEOUT: int = 5
    SQS_READ_TIMEOUT: int = 10

    # ------------------------------------------------------------
    # Job system
    # ------------------------------------------------------------

    """
    Connection profile and logical queue name used to interpret message
    bodies. Held constant for the process lifetime.
    """
    QUEUE_CONNECTION: str = "sqs"
    QUEUE_NAME: str = "default"

    """
    Modules exposing register(registry) that add job types at cold start
    """
    JOB_MODULES: List[str] = []

    # ------------------------------------------------------------
    # Batch handling
    # ------------------------------------------------------------
    ACK_FAILURE_POLICY: Literal["best_effort", "report_failure"] = Field(
        default="best_effort",
        description=(
            "best_effort: a failed delete still reports the message as succeeded. "
            "report_failure: a failed delete reports the message as failed"
        )
    )
    DEADLINE_SAFETY_MARGIN_MS: int = Field(
        default=1000,
        ge=0,
        description="Stop starting new jobs when less invocation time than this remains"
    )
    MAX_RECEIVE_COUNT: int = Field(
        default=5,
        ge=1,
        description="maxReceiveCount of the queue redrive policy (telemetry only)"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)


settings = Settings()
