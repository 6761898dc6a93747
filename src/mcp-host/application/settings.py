"""MCP Host settings and logging setup."""

import logging
import sys

from neuroglia.hosting.abstractions import ApplicationSettings


class Settings(ApplicationSettings):
    """Application settings for the MCP host."""

    # Debugging Configuration
    debug: bool = True
    environment: str = "development"  # development, production
    log_level: str = "INFO"

    # Application Configuration
    app_name: str = "MCP Host"
    app_version: str = "1.0.0"
    app_host: str = "127.0.0.1"  # Uvicorn bind address (override in production as needed)
    app_port: int = 8080  # Uvicorn port

    # CORS Configuration
    enable_cors: bool = True
    cors_origins: list[str] = ["http://localhost:3000"]

    # MCP Client Configuration
    mcp_client_name: str = "ai-chat-mcp-host"  # clientInfo.name sent during the handshake
    mcp_client_version: str = "1.0.0"
    mcp_connect_timeout: float = 10.0  # Bound on connect/test: open + handshake + probing
    mcp_request_timeout: float = 30.0  # Timeout for individual HTTP requests
    mcp_sse_read_timeout: float = 300.0  # Read timeout on SSE streams
    mcp_secrets_path: str | None = None  # YAML file with per-server env vars and headers
    mcp_max_event_subscribers: int = 32  # Bound on connection event subscribers

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables


app_settings = Settings()


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("fastapi").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
