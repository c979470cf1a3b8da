"""Public URL construction and validation helpers for nocodb-setup."""

import ipaddress
import re
from urllib.parse import urlsplit

from nocodbsetup.errors import SetupError
from nocodbsetup.errors_catalog import actionable_error

DOTTED_QUAD_PATTERN = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+")


class ValidationService:
    """Builds NC_PUBLIC_URL and guarantees it parses before it is written."""

    ALLOWED_SCHEMES = ("http", "https")

    def __init__(self, env_file: str = ".env"):
        self.env_file = env_file

    def build_public_url(self, host: str, port: int, scheme: str = "http") -> str:
        return f"{scheme}://{host}:{port}"

    def validate_public_url(self, url: str) -> str:
        try:
            parts = urlsplit(url)
            hostname = parts.hostname
            port = parts.port
        except ValueError as exc:
            self._fail(url, str(exc))

        if parts.scheme not in self.ALLOWED_SCHEMES:
            self._fail(url, f"unsupported scheme '{parts.scheme}'")
        if not hostname:
            self._fail(url, "missing host")
        if port is None:
            self._fail(url, "missing port")
        if parts.path or parts.query or parts.fragment:
            self._fail(url, "unexpected path, query or fragment")

        host_part = parts.netloc.rpartition("@")[2]
        if host_part.startswith("["):
            try:
                ipaddress.IPv6Address(hostname)
            except ValueError as exc:
                self._fail(url, f"bracketed host is not an IPv6 address ({exc})")
        elif ":" in hostname:
            self._fail(url, "IPv6 hosts must be wrapped in brackets")
        elif DOTTED_QUAD_PATTERN.fullmatch(hostname):
            try:
                ipaddress.IPv4Address(hostname)
            except ValueError:
                self._fail(url, "not a valid IPv4 address")

        return url

    def _fail(self, url: str, reason: str):
        raise SetupError(
            actionable_error("invalid_public_url", url=url, reason=reason, env_file=self.env_file)
        )
