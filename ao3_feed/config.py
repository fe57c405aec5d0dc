"""Configuration loading for the feed service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from .fetcher import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .stream import DEFAULT_KEEPALIVE_INTERVAL

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3336


@dataclass
class SourceConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class KeepAliveConfig:
    enabled: bool = True
    interval: float = DEFAULT_KEEPALIVE_INTERVAL


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    keepalive: KeepAliveConfig = field(default_factory=KeepAliveConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _log_file_path(config_path: Path, value: str) -> str:
    """Log file location; relative paths are anchored at the config file's directory."""
    log_path = Path(value.strip()).expanduser()
    if not log_path.is_absolute():
        log_path = config_path.parent / log_path
    return str(log_path.resolve())


def _parse_bool(value: str, name: str) -> bool:
    normalised = value.strip().lower()
    if normalised in ("true", "yes", "1"):
        return True
    if normalised in ("false", "no", "0"):
        return False
    raise ValueError(f"<{name}> must be true or false, got {value!r}")


def _parse_positive(value: str, name: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"<{name}> must be a number, got {value!r}")
    if number <= 0:
        raise ValueError(f"<{name}> must be positive.")
    return number


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()
    config = AppConfig()

    # Server
    server_node = root.find("server")
    if server_node is not None:
        config.server.host = server_node.findtext("host", config.server.host).strip()
        port = server_node.findtext("port")
        if port:
            config.server.port = int(port)

    # Source site
    source_node = root.find("source")
    if source_node is not None:
        base_url = source_node.findtext("base-url")
        if base_url:
            config.source.base_url = base_url.strip().rstrip("/")
        timeout = source_node.findtext("timeout")
        if timeout:
            config.source.timeout = _parse_positive(timeout, "timeout")
        user_agent = source_node.findtext("user-agent")
        if user_agent:
            config.source.user_agent = user_agent.strip()

    # Keep-alive
    keepalive_node = root.find("keepalive")
    if keepalive_node is not None:
        enabled = keepalive_node.findtext("enabled")
        if enabled:
            config.keepalive.enabled = _parse_bool(enabled, "enabled")
        interval = keepalive_node.findtext("interval")
        if interval:
            config.keepalive.interval = _parse_positive(interval, "interval")

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "INFO").strip()
        log_file = log_node.findtext("file")
        if log_file:
            config.logging.file = _log_file_path(config_path, log_file)

    return config
