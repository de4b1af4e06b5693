"""
Client configuration.

Defaults live here as module constants; the CLI builds a ``Config`` from them
and lets flags override individual values.
"""

import os
from typing import Optional

# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

DEFAULT_SERVER_URL = "ws://127.0.0.1:3000/ws"
SERVER_URL_ENV = "BROADSIDE_SERVER_URL"
DEFAULT_CONNECT_TIMEOUT = 5.0  # seconds

# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

DEFAULT_FPS = 60
DEFAULT_CELL_SIZE = 40
DEFAULT_LOG_LEVEL = "INFO"


def default_server_url() -> str:
    return os.environ.get(SERVER_URL_ENV) or DEFAULT_SERVER_URL


class Config:
    """Runtime settings for one client process."""

    def __init__(
        self,
        server_url: Optional[str] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        fps: int = DEFAULT_FPS,
        cell_size: int = DEFAULT_CELL_SIZE,
        log_level: str = DEFAULT_LOG_LEVEL,
    ):
        self.server_url = server_url or default_server_url()
        if not self.server_url.startswith(("ws://", "wss://")):
            raise ValueError(f"server URL must use ws:// or wss://, got {self.server_url!r}")
        if connect_timeout <= 0:
            raise ValueError("connect timeout must be positive")
        if fps <= 0 or cell_size <= 0:
            raise ValueError("fps and cell size must be positive")
        self.connect_timeout = connect_timeout
        self.fps = fps
        self.cell_size = cell_size
        self.log_level = log_level.upper()

    def __repr__(self) -> str:
        return (f"Config(server_url={self.server_url!r}, connect_timeout={self.connect_timeout}, "
                f"fps={self.fps}, cell_size={self.cell_size}, log_level={self.log_level!r})")
