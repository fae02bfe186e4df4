from config.loader import ConfigLoader
from config.preprocessor import (
    ConfigPreprocessor,
    ConfigValue,
    EnvVarPreprocessor,
)
from config.models.auth import (
    AuthConfigUnion,
    AuthType,
    OAuth2Config,
    StaticTokenConfig,
)
from config.models.executor import ExecutorConfig
from config.models.middleware import (
    CacheConfigModel,
    PerformanceConfigModel,
    RetryConfigModel,
)
from config.models.transport import (
    TcpConnectionConfig,
    TransportConfigModel,
    TransportEngineType,
)

__all__ = [
    "ConfigLoader",
    "ConfigPreprocessor",
    "ConfigValue",
    "EnvVarPreprocessor",
    "AuthConfigUnion",
    "AuthType",
    "OAuth2Config",
    "StaticTokenConfig",
    "ExecutorConfig",
    "CacheConfigModel",
    "PerformanceConfigModel",
    "RetryConfigModel",
    "TcpConnectionConfig",
    "TransportConfigModel",
    "TransportEngineType",
]
