"""Shared domain models for nocodb-setup."""

import os
from dataclasses import dataclass
from typing import Optional

from .constants import (
    COMPOSE_FILE_NAME,
    DATA_DIR_NAME,
    DEFAULT_BASE_DIR,
    DEFAULT_CONTAINER_NAME,
    DEFAULT_IMAGE,
    DEFAULT_PORT,
    DETECT_TIMEOUT_SECONDS,
    ENV_FILE_NAME,
    IPV4_DETECT_URL,
    IPV6_DETECT_URL,
    LOG_TAIL_LINES,
    PROBE_TIMEOUT_SECONDS,
    STARTUP_WAIT_SECONDS,
)


@dataclass(frozen=True)
class SetupSettings:
    """Resolved options for one provisioning run."""

    base_dir: str = DEFAULT_BASE_DIR
    port: int = DEFAULT_PORT
    image: str = DEFAULT_IMAGE
    container_name: str = DEFAULT_CONTAINER_NAME
    ipv4_detect_url: str = IPV4_DETECT_URL
    ipv6_detect_url: str = IPV6_DETECT_URL
    detect_timeout: float = DETECT_TIMEOUT_SECONDS
    reset_data: bool = True
    startup_wait_seconds: float = STARTUP_WAIT_SECONDS
    log_tail_lines: int = LOG_TAIL_LINES
    probe_health: bool = False
    probe_timeout_seconds: float = PROBE_TIMEOUT_SECONDS
    dry_run: bool = False

    @property
    def env_file(self) -> str:
        return os.path.join(self.base_dir, ENV_FILE_NAME)

    @property
    def compose_file(self) -> str:
        return os.path.join(self.base_dir, COMPOSE_FILE_NAME)

    @property
    def data_dir(self) -> str:
        return os.path.join(self.base_dir, DATA_DIR_NAME)


@dataclass(frozen=True)
class ResolvedHost:
    """Host string ready for URL interpolation, plus the tier that produced it."""

    host: str
    source: str

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


@dataclass(frozen=True)
class HealthReport:
    """Outcome of the post-start health check."""

    status: str
    logs: str = ""
    probe_ok: Optional[bool] = None

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"
