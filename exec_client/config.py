"""
Configuration management for the execution client

Defaults can be supplied through environment variables and a .env file,
but configuration is always handed to the client explicitly as a
ClientConfig value.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv


DEFAULT_ADDRESS = "ipc:///tmp/tx-executor.ipc"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5
DEFAULT_RECONNECT_DELAY_SECONDS = 1.0

CONTENT_TYPES = ("msgpack", "json")


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # exec_client package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class TransportConfig:
    """
    Per-transport settings

    Built from ClientConfig.transport_config(); transports never read the
    environment themselves.
    """
    address: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    auto_reconnect: bool = True
    max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS
    reconnect_delay_seconds: float = DEFAULT_RECONNECT_DELAY_SECONDS
    verbose: bool = False
    logger: Optional[logging.Logger] = None
    # HTTP only
    api_key: str = ""
    content_type: str = "msgpack"


@dataclass
class ClientConfig:
    """
    Execution client configuration

    The transport is chosen from the address scheme:
    - http:// or https:// -> HTTP transport (api_key required)
    - tcp:// or ipc://    -> ZeroMQ transport

    Usage:
        # Defaults (plus any EXEC_CLIENT_* environment overrides)
        client = ExecutionClient()

        # Explicit settings
        config = ClientConfig(address="tcp://127.0.0.1:5555", timeout_seconds=5)
        client = ExecutionClient(config)

    Environment variables:
        EXEC_CLIENT_ADDRESS, EXEC_CLIENT_API_KEY, EXEC_CLIENT_CONTENT_TYPE,
        EXEC_CLIENT_TIMEOUT_SECONDS, EXEC_CLIENT_AUTO_RECONNECT,
        EXEC_CLIENT_MAX_RECONNECT_ATTEMPTS, EXEC_CLIENT_RECONNECT_DELAY_SECONDS,
        EXEC_CLIENT_VERBOSE
    """
    address: Optional[str] = field(default_factory=lambda: _get_env("EXEC_CLIENT_ADDRESS", None))
    # Deprecated: use address
    zmq_address: Optional[str] = None
    api_key: str = field(default_factory=lambda: _get_env("EXEC_CLIENT_API_KEY", ""))
    content_type: str = field(default_factory=lambda: _get_env("EXEC_CLIENT_CONTENT_TYPE", "msgpack"))
    timeout_seconds: float = field(
        default_factory=lambda: _get_env_float("EXEC_CLIENT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    )
    auto_reconnect: bool = field(default_factory=lambda: _get_env_bool("EXEC_CLIENT_AUTO_RECONNECT", True))
    max_reconnect_attempts: int = field(
        default_factory=lambda: _get_env_int("EXEC_CLIENT_MAX_RECONNECT_ATTEMPTS", DEFAULT_MAX_RECONNECT_ATTEMPTS)
    )
    reconnect_delay_seconds: float = field(
        default_factory=lambda: _get_env_float("EXEC_CLIENT_RECONNECT_DELAY_SECONDS", DEFAULT_RECONNECT_DELAY_SECONDS)
    )
    verbose: bool = field(default_factory=lambda: _get_env_bool("EXEC_CLIENT_VERBOSE", False))
    # Any object with debug/info/warning/error (logging.Logger or LoggerAdapter)
    logger: Optional[logging.Logger] = None
    # Opaque Solana RPC connection handed to DEX pool handles
    connection: Optional[Any] = None

    @property
    def resolved_address(self) -> str:
        """address, falling back to the deprecated zmq_address, then the default"""
        return self.address or self.zmq_address or DEFAULT_ADDRESS

    @property
    def is_http(self) -> bool:
        return self.resolved_address.startswith(("http://", "https://"))

    def transport_config(self) -> TransportConfig:
        return TransportConfig(
            address=self.resolved_address,
            timeout_seconds=self.timeout_seconds,
            auto_reconnect=self.auto_reconnect,
            max_reconnect_attempts=self.max_reconnect_attempts,
            reconnect_delay_seconds=self.reconnect_delay_seconds,
            verbose=self.verbose,
            logger=self.logger,
            api_key=self.api_key,
            content_type=self.content_type,
        )


@dataclass
class LoggingConfig:
    """
    Logging configuration for the exec_client logger hierarchy

    File logging is off unless LOG_FILE is set (or log_file is passed).

    Environment variables:
        LOG_FILE: Path to log file
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", ""))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "exec_client",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (read from environment if None)
        logger_name: Name of the logger to configure (default: exec_client)

    Returns:
        Configured logger instance

    Example:
        from exec_client.config import LoggingConfig, setup_logging
        logger = setup_logging(LoggingConfig(log_level="DEBUG"))
    """
    if log_config is None:
        log_config = LoggingConfig()

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    # Child loggers inherit handlers from parent, only the level is set
    for name in [
        f"{logger_name}.transport",
        f"{logger_name}.client",
        f"{logger_name}.builder",
    ]:
        logging.getLogger(name).setLevel(log_config.level)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger
