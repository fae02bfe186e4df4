from enum import Enum
from typing import Any
from pydantic import Field, BaseModel


class TransportEngineType(str, Enum):
    AIOHTTP = "aiohttp"


class TcpConnectionConfig(BaseModel):
    """
    Keyword arguments handed to aiohttp.TCPConnector untouched. Connection
    pooling and DNS caching stay the client's concern.
    """
    limit: int = 100
    limit_per_host: int = 0
    ttl_dns_cache: int = 300
    force_close: bool = False


class TransportConfigModel(BaseModel):
    """Underlying network client used by the terminal handler"""
    type: TransportEngineType = Field(default=TransportEngineType.AIOHTTP)
    max_redirects: int = Field(default=10, ge=0)
    tcp_connection: TcpConnectionConfig | None = None

    def to_runtime_args(self) -> dict[str, Any]:
        return {
            "connector_config": self.tcp_connection,
            "max_redirects": self.max_redirects,
        }
