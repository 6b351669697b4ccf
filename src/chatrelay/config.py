"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the chat relay.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m chatrelay --port 3000 --open                     │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── CHATRELAY_PORT=3000 python -m chatrelay                    │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass


@dataclass
class ServerConfig:
    """
    Configuration for the chat relay.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog
    HTTP        max_request_size, read_timeout, write_timeout
    STREAMING   keepalive_interval
    IDENTITY    server_name
    STARTUP     open_browser, log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (default; the relay has no auth)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """The port number to listen on. 0 lets the OS pick (tests)."""

    backlog: int = 128
    """Maximum number of queued, not-yet-accepted connections."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = 64 * 1024  # 64 KiB
    """
    Capacity of each connection's read buffer, head and body together.
    Anything larger is answered with 413 Payload Too Large.
    """

    read_timeout: float = 10.0
    """Seconds a single socket read may block before the connection is dropped."""

    write_timeout: float = 10.0
    """Seconds a single socket write may block before the connection is dropped."""

    # ─────────────────────────────────────────────────────────────────────
    # STREAMING
    # ─────────────────────────────────────────────────────────────────────

    keepalive_interval: float = 10.0
    """
    Idle seconds on an event stream before a ping frame is sent.
    Keeps proxies from closing the stream and detects vanished clients.
    """

    # ─────────────────────────────────────────────────────────────────────
    # IDENTITY & STARTUP
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "chatrelay"
    """Value of the Server header on every response."""

    open_browser: bool = False
    """Open the default browser on the root URL once the port is bound."""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    @property
    def url(self) -> str:
        """Root URL of the relay, as a browser should open it."""
        host = "localhost" if self.host in ("127.0.0.1", "0.0.0.0", "") else self.host
        return f"http://{host}:{self.port}/"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        CHATRELAY_HOST           Bind host (default: 127.0.0.1)
        CHATRELAY_PORT           Bind port (default: 8080)
        CHATRELAY_READ_TIMEOUT   Read timeout in seconds (default: 10)
        CHATRELAY_WRITE_TIMEOUT  Write timeout in seconds (default: 10)
        CHATRELAY_KEEPALIVE      Ping interval in seconds (default: 10)
        CHATRELAY_LOG_LEVEL      Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("CHATRELAY_HOST", "127.0.0.1"),
            port=int(os.getenv("CHATRELAY_PORT", "8080")),
            read_timeout=float(os.getenv("CHATRELAY_READ_TIMEOUT", "10")),
            write_timeout=float(os.getenv("CHATRELAY_WRITE_TIMEOUT", "10")),
            keepalive_interval=float(os.getenv("CHATRELAY_KEEPALIVE", "10")),
            log_level=os.getenv("CHATRELAY_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup rather than on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.max_request_size < 1024:
            raise ValueError("max_request_size must be >= 1024")

        for name in ("read_timeout", "write_timeout", "keepalive_interval"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {self.log_level}")
