"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

DEFAULT_API_URL = "http://127.0.0.1:8001"
DEFAULT_API_VERSION = "extensions/v1beta1"
DEFAULT_IMAGE = "gcr.io/hightowerlabs/alpine"
DEFAULT_INSTALL_DIR = "/opt/bin"
DEFAULT_RETRY_INTERVAL = 10.0

WORKLOAD_RESOURCE = "replicasets"


@dataclass
class ClusterConfig:
    """Where the cluster API lives and how to talk to it."""
    api_url: str = DEFAULT_API_URL
    namespace: str = "default"
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = 30.0
    verify_ssl: bool = True
    ca_cert: Optional[str] = None
    token: Optional[str] = None

    @property
    def collection_path(self) -> str:
        """Collection endpoint for replica sets in the configured namespace."""
        # Core group resources live under /api, named groups under /apis
        prefix = "apis" if "/" in self.api_version else "api"
        return (
            f"/{prefix}/{self.api_version}/namespaces/{self.namespace}/{WORKLOAD_RESOURCE}"
        )

    def item_path(self, name: str) -> str:
        return f"{self.collection_path}/{name}"

    def scale_path(self, name: str) -> str:
        return f"{self.item_path(name)}/scale"

    @staticmethod
    def log_path(namespace: str, pod: str) -> str:
        return f"/api/v1/namespaces/{namespace}/pods/{pod}/log"


@dataclass
class BuilderConfig:
    """Replica set document defaults."""
    image: str = DEFAULT_IMAGE
    install_dir: str = DEFAULT_INSTALL_DIR
    native_init_containers: bool = False


@dataclass
class LogStreamConfig:
    """Log tailing configuration."""
    retry_interval: float = DEFAULT_RETRY_INTERVAL


@dataclass
class APIConfig:
    """API configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_cluster_config(self) -> ClusterConfig:
        """Get cluster connection configuration."""
        ...

    def get_builder_config(self) -> BuilderConfig:
        """Get replica set document defaults."""
        ...

    def get_log_stream_config(self) -> LogStreamConfig:
        """Get log tailing configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...


_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def _env_flag(name: str, default: str) -> bool:
    raw = os.getenv(name, default)
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be true or false, got {raw!r}")


def _env_number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_cluster_config(self) -> ClusterConfig:
        """Get cluster connection configuration from environment variables."""
        return ClusterConfig(
            api_url=os.getenv("KARGO_API_URL", DEFAULT_API_URL),
            namespace=os.getenv("KARGO_NAMESPACE", "default"),
            api_version=os.getenv("KARGO_API_VERSION", DEFAULT_API_VERSION),
            request_timeout=_env_number("KARGO_REQUEST_TIMEOUT", "30"),
            verify_ssl=_env_flag("KARGO_SSL_VERIFY", "true"),
            ca_cert=os.getenv("KARGO_CA_CERT") or None,
            token=os.getenv("KARGO_TOKEN") or None,
        )

    def get_builder_config(self) -> BuilderConfig:
        """Get replica set document defaults from environment variables."""
        return BuilderConfig(
            image=os.getenv("KARGO_IMAGE", DEFAULT_IMAGE),
            install_dir=os.getenv("KARGO_INSTALL_DIR", DEFAULT_INSTALL_DIR),
            native_init_containers=_env_flag("KARGO_NATIVE_INIT_CONTAINERS", "false"),
        )

    def get_log_stream_config(self) -> LogStreamConfig:
        """Get log tailing configuration from environment variables."""
        return LogStreamConfig(
            retry_interval=_env_number(
                "KARGO_LOG_RETRY_INTERVAL", str(DEFAULT_RETRY_INTERVAL)
            ),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=_env_number("API_PORT", "8080", cast=int),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
