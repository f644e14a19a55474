import logging
import os
from typing import List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file if it exists
load_dotenv()

LOCAL_REGION_KEY = "local"
LOCAL_CREDENTIAL = "local"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return int(value)


class DynoCanvasConfig(BaseModel):
    """Configuration for the DynamoDB connection and dyno-canvas operations."""

    mode: str = Field(
        default_factory=lambda: os.getenv(
            "DYNOCANVAS_MODE",
            "local" if os.getenv("DYNAMODB_ENDPOINT") else "aws"
        ),
        description="Connection mode: 'local' (DynamoDB Local) or 'aws'"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_DEFAULT_REGION") or os.getenv("AWS_REGION") or "ap-northeast-1",
        description="AWS region name"
    )

    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT"),
        description="DynamoDB endpoint URL (for local development)"
    )

    profile_name: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_PROFILE"),
        description="Named AWS profile used in 'aws' mode"
    )

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    # Access pattern administration
    admin_table_name: str = Field(
        default_factory=lambda: os.getenv("DYNOCANVAS_ADMIN_TABLE_NAME", "dyno-canvas"),
        description="Table holding access pattern definitions"
    )

    env_name: str = Field(
        default_factory=lambda: os.getenv("DYNOCANVAS_ENV_NAME", "local"),
        description="Environment name used as account id when none can be resolved"
    )

    read_only: bool = Field(
        default_factory=lambda: _env_flag("DYNOCANVAS_READONLY"),
        description="Reject every mutating operation"
    )

    # Query and batch settings
    default_page_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Page size used when a search does not specify a limit"
    )

    batch_chunk_size: int = Field(
        default=25,
        ge=1,
        le=25,
        description="Records per BatchWriteItem call (DynamoDB caps this at 25)"
    )

    batch_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retry attempts for unprocessed or throttled batch writes"
    )

    export_max_items: Optional[int] = Field(
        default_factory=lambda: _env_int("DYNOCANVAS_EXPORT_MAX_ITEMS"),
        description="Fail a full-drain export once it exceeds this many items (None = unbounded)"
    )

    # Connection settings
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        description="Number of retry attempts for failed requests"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Logging settings
    log_level: str = Field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"),
        description="Log level applied to the dyno_canvas logger"
    )

    @field_validator('mode')
    @classmethod
    def validate_mode(cls, v):
        """Validate connection mode."""
        valid_modes = ['local', 'aws']
        if v not in valid_modes:
            raise ValueError(f"Mode must be one of: {valid_modes}")
        return v

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level: {v}")
        return level

    def resolved_credentials(self) -> Tuple[Optional[str], Optional[str]]:
        """Access key pair for the session; DynamoDB Local accepts fixed dummies."""
        if self.is_local:
            return (
                self.aws_access_key_id or LOCAL_CREDENTIAL,
                self.aws_secret_access_key or LOCAL_CREDENTIAL,
            )
        return self.aws_access_key_id, self.aws_secret_access_key

    @property
    def is_local(self) -> bool:
        return self.mode == 'local'

    @property
    def region_key(self) -> str:
        """Region label stored with access patterns."""
        return "dynamodb-local" if self.is_local else self.region_name

    def pool_key(self) -> str:
        """Identity of the connection this config describes.

        Two configs with the same key share one boto3 resource in a ClientPool.
        """
        target = self.endpoint_url or "aws"
        access_key_id, _ = self.resolved_credentials()
        return "|".join([
            self.mode,
            target,
            self.region_name,
            self.profile_name or "default",
            access_key_id or "default",
        ])

    def available_regions(self) -> List[str]:
        """Regions offered to callers, 'local' first when an endpoint is configured."""
        regions_env = os.getenv("DYNOCANVAS_REGIONS", "")
        regions = [r.strip() for r in regions_env.split(",") if r.strip()]

        if not regions:
            if self.endpoint_url:
                regions.append(LOCAL_REGION_KEY)
            regions.append(self.region_name)

        # dict.fromkeys keeps first-seen order
        regions = list(dict.fromkeys(regions))
        if LOCAL_REGION_KEY in regions:
            regions = [LOCAL_REGION_KEY] + [r for r in regions if r != LOCAL_REGION_KEY]
        return regions

    def configure_logging(self) -> logging.Logger:
        """Apply log_level to the package logger and return it."""
        package_logger = logging.getLogger("dyno_canvas")
        package_logger.setLevel(self.log_level)
        return package_logger

    @classmethod
    def from_env(cls) -> 'DynoCanvasConfig':
        """Create configuration from environment variables.

        Returns:
            DynoCanvasConfig instance
        """
        return cls()

    @classmethod
    def for_local_development(cls, endpoint_url: str = "http://localhost:8000") -> 'DynoCanvasConfig':
        """Create configuration for local DynamoDB development.

        Returns:
            DynoCanvasConfig instance configured for DynamoDB Local
        """
        return cls(
            mode="local",
            aws_access_key_id=LOCAL_CREDENTIAL,
            aws_secret_access_key=LOCAL_CREDENTIAL,
            endpoint_url=endpoint_url,
            log_level="DEBUG"
        )

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=True
    )
