from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Exactly one of these is normally set; parameter_path wins when both are.
    topic_arn: str = Field("", validation_alias="TOPIC_ARN")
    parameter_path: str = Field("", validation_alias="PARAMETER_PATH")

    # Empty means "sns-listener-<uuid4>". ".fifo" is appended for FIFO topics.
    queue_name: str = Field("", validation_alias="QUEUE_NAME")
    polling_interval_ms: int = Field(1000, validation_alias="POLLING_INTERVAL_MS")
    verbose: bool = Field(False, validation_alias="VERBOSE")

    service_backend: str = Field("aws", validation_alias="SERVICE_BACKEND")
    aws_region: str = Field("", validation_alias="AWS_REGION")
    aws_endpoint_url: str = Field("", validation_alias="AWS_ENDPOINT_URL")

    otlp_enabled: bool = Field(False, validation_alias="OTLP_ENABLED")
    otel_service_name: str = Field("sns-listener", validation_alias="OTEL_SERVICE_NAME")
