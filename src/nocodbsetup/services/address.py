"""Public address discovery for nocodb-setup."""

import re
import socket
from typing import Callable, Iterable, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from rich.markup import escape

from nocodbsetup.constants import (
    DETECT_TIMEOUT_SECONDS,
    FALLBACK_HOST,
    IPV4_DETECT_URL,
    IPV6_DETECT_URL,
)
from nocodbsetup.errors_catalog import actionable_error
from nocodbsetup.models import ResolvedHost

IPV4_PATTERN = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+")
IPV6_PATTERN = re.compile(r"[0-9a-fA-F:]+")
IPV6_MIN_LENGTH = 5

Strategy = Tuple[str, Callable[[], Optional[str]]]


def is_ipv4_candidate(value: str) -> bool:
    return bool(value) and IPV4_PATTERN.fullmatch(value) is not None


def is_ipv6_candidate(value: str) -> bool:
    return (
        bool(value)
        and len(value) >= IPV6_MIN_LENGTH
        and IPV6_PATTERN.fullmatch(value) is not None
    )


def bracket_host(address: str) -> str:
    return f"[{address}]"


def first_resolved(strategies: Iterable[Strategy]) -> Optional[ResolvedHost]:
    """Return the first strategy result that is not empty, or ``None``."""
    for source, strategy in strategies:
        host = strategy()
        if host:
            return ResolvedHost(host=host, source=source)
    return None


class AddressFamilyAdapter(HTTPAdapter):
    """Transport adapter whose connections originate from one address family.

    Binding to the wildcard address of a family makes connection attempts to
    the other family fail, so a dual-stack endpoint answers over the family
    being asked about.
    """

    SOURCE_ADDRESSES = {
        socket.AF_INET: ("0.0.0.0", 0),
        socket.AF_INET6: ("::", 0),
    }

    def __init__(self, family: int, **kwargs):
        self.family = family
        self.source_address = self.SOURCE_ADDRESSES[family]
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["source_address"] = self.source_address
        super().init_poolmanager(*args, **kwargs)


def family_session(family: int, requests_module=requests):
    session = requests_module.Session()
    adapter = AddressFamilyAdapter(family)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class AddressResolverService:
    """Determines the public host for NC_PUBLIC_URL: IPv4, then IPv6, then localhost."""

    def __init__(
        self,
        logger,
        console,
        requests_module=requests,
        ipv4_url: str = IPV4_DETECT_URL,
        ipv6_url: str = IPV6_DETECT_URL,
        timeout: float = DETECT_TIMEOUT_SECONDS,
    ):
        self.logger = logger
        self.console = console
        self.requests = requests_module
        self.ipv4_url = ipv4_url
        self.ipv6_url = ipv6_url
        self.timeout = timeout

    def _fetch(self, url: str, family: int) -> str:
        try:
            with family_session(family, self.requests) as session:
                response = session.get(url, timeout=self.timeout)
                response.raise_for_status()
                return (response.text or "").strip()
        except self.requests.RequestException as exc:
            self.logger.debug("Address lookup via %s failed: %s", url, exc)
            return ""

    def fetch_ipv4(self) -> Optional[str]:
        candidate = self._fetch(self.ipv4_url, socket.AF_INET)
        if not is_ipv4_candidate(candidate):
            if candidate:
                self.logger.debug("Ignoring non-IPv4 response: %r", candidate)
            return None
        return candidate

    def fetch_ipv6(self) -> Optional[str]:
        candidate = self._fetch(self.ipv6_url, socket.AF_INET6)
        if not is_ipv6_candidate(candidate):
            if candidate:
                self.logger.debug("Ignoring non-IPv6 response: %r", candidate)
            return None
        return bracket_host(candidate)

    def strategies(self):
        return [("ipv4", self.fetch_ipv4), ("ipv6", self.fetch_ipv6)]

    def resolve(self, env_file: str = ".env") -> ResolvedHost:
        self.console.print("[blue]Detecting public IP...[/blue]")
        resolved = first_resolved(self.strategies())

        if resolved is None:
            message = actionable_error("public_ip_fallback", env_file=env_file)
            self.logger.warning(message)
            self.console.print(f"[bold red]Warning:[/bold red] {escape(message)}")
            return ResolvedHost(host=FALLBACK_HOST, source="fallback")

        if resolved.source == "ipv6":
            self.console.print(f"[green]Using IPv6 (bracketed): {escape(resolved.host)}[/green]")
        else:
            self.console.print(f"[green]Using IPv4: {escape(resolved.host)}[/green]")
        self.logger.info("Public host resolved via %s: %s", resolved.source, resolved.host)
        return resolved
