from pydantic import BaseModel, Field, model_validator

from config.models.auth import AuthConfigUnion
from config.models.middleware import (
    CacheConfigModel,
    PerformanceConfigModel,
    RetryConfigModel,
)
from config.models.transport import TransportConfigModel


class ExecutorConfig(BaseModel):
    """
    Everything needed to build a RequestExecutor. Optional sections left
    out of the file leave the matching middleware disabled.
    """
    timeout: float | None = Field(
        default=30.0,
        description="Total seconds allowed for one network exchange",
    )
    min_wait_retry: float = Field(default=0.5, ge=0)
    max_wait_retry: float = Field(default=10.0, ge=0)
    logging: bool = False
    performance: PerformanceConfigModel | None = None
    cache: CacheConfigModel | None = None
    retry: RetryConfigModel | None = None
    auth: AuthConfigUnion | None = None
    transport: TransportConfigModel = Field(default_factory=TransportConfigModel)

    @model_validator(mode="after")
    def _check_retry_bounds(self) -> "ExecutorConfig":
        if self.max_wait_retry < self.min_wait_retry:
            raise ValueError(
                f"max_wait_retry ({self.max_wait_retry}) must not be lower than "
                f"min_wait_retry ({self.min_wait_retry})"
            )
        return self
