from pydantic import BaseModel, Field
from typing import Literal, Any

from core.cache import CacheMode


class RetryConfigModel(BaseModel):
    """Retry middleware configuration"""
    strategy: Literal["exponential", "linear"] = "exponential"
    retry_count: int = Field(default=3, ge=0)

    def to_runtime_args(self) -> dict[str, Any]:
        return {"retry_count": self.retry_count}


class CacheConfigModel(BaseModel):
    """Caching middleware configuration"""
    ttl: float = Field(gt=0, description="Seconds a cached outcome stays valid")
    mode: CacheMode = CacheMode.ERRORS

    def to_runtime_args(self) -> dict[str, Any]:
        return {
            "ttl": self.ttl,
            "mode": self.mode,
        }


class PerformanceConfigModel(BaseModel):
    """Slow request warning"""
    threshold: float = Field(gt=0, description="Seconds before a request is reported as slow")

    def to_runtime_args(self) -> dict[str, Any]:
        return {"threshold": self.threshold}
