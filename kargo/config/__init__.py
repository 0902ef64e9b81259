from .provider import (
    APIConfig,
    BuilderConfig,
    ClusterConfig,
    ConfigProvider,
    EnvConfigProvider,
    LogStreamConfig,
)

__all__ = [
    "APIConfig",
    "BuilderConfig",
    "ClusterConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "LogStreamConfig",
]
