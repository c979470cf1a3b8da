import logging
import socket

import pytest

from nocodbsetup.services.address import (
    AddressFamilyAdapter,
    AddressResolverService,
    family_session,
    first_resolved,
    is_ipv4_candidate,
    is_ipv6_candidate,
)

IPV4_URL = "https://v4.example.test/ip"
IPV6_URL = "https://v6.example.test/ip"


class DummyConsole:
    def __init__(self):
        self.lines = []

    def print(self, *args, **_kwargs):
        self.lines.append(" ".join(str(arg) for arg in args))


class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise FakeRequestsModule.RequestException(f"HTTP {self.status_code}")


class FakeSession:
    def __init__(self, owner):
        self.owner = owner
        self.adapters = {}
        self.closed = False

    def mount(self, prefix, adapter):
        self.adapters[prefix] = adapter

    def get(self, url, timeout=None):
        adapter = self.adapters[url.split(":", 1)[0] + "://"]
        self.owner.calls.append((url, adapter.family))
        outcome = self.owner.responses.get(url, FakeResponse(""))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def __enter__(self):
        return self

    def __exit__(self, *_exc_info):
        self.closed = True


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, responses):
        self.responses = responses
        self.calls = []
        self.sessions = []

    def Session(self):
        session = FakeSession(self)
        self.sessions.append(session)
        return session


def build_service(responses):
    fake_requests = FakeRequestsModule(responses)
    console = DummyConsole()
    service = AddressResolverService(
        logger=logging.getLogger("nocodbsetup.tests"),
        console=console,
        requests_module=fake_requests,
        ipv4_url=IPV4_URL,
        ipv6_url=IPV6_URL,
        timeout=1.0,
    )
    return service, fake_requests, console


@pytest.mark.parametrize("value", ["203.0.113.5", "10.0.0.1", "999.1.1.1"])
def test_ipv4_pattern_accepts_dotted_quads(value):
    assert is_ipv4_candidate(value)


@pytest.mark.parametrize(
    "value",
    ["", "example.com", "2001:db8::1", "203.0.113", "203.0.113.5\n", "<html>203.0.113.5</html>"],
)
def test_ipv4_pattern_rejects_other_shapes(value):
    assert not is_ipv4_candidate(value)


@pytest.mark.parametrize("value", ["2001:db8::1", "fe80::1", "::ffff", "::fff"])
def test_ipv6_pattern_accepts_hex_and_colons(value):
    assert is_ipv6_candidate(value)


@pytest.mark.parametrize("value", ["", "::1", "abcd", "2001:db8::g", "203.0.113.5"])
def test_ipv6_pattern_rejects_short_or_foreign_values(value):
    assert not is_ipv6_candidate(value)


def test_ipv4_result_wins_without_trying_ipv6():
    service, fake_requests, _ = build_service({IPV4_URL: FakeResponse("203.0.113.5")})

    resolved = service.resolve()

    assert resolved.host == "203.0.113.5"
    assert resolved.source == "ipv4"
    assert [url for url, _ in fake_requests.calls] == [IPV4_URL]


@pytest.mark.parametrize("ipv4_body", ["", "example.com", "2001:db8::1", "not an ip"])
def test_invalid_ipv4_falls_through_to_bracketed_ipv6(ipv4_body):
    service, fake_requests, _ = build_service(
        {
            IPV4_URL: FakeResponse(ipv4_body),
            IPV6_URL: FakeResponse("2001:db8::1\n"),
        }
    )

    resolved = service.resolve()

    assert resolved.host == "[2001:db8::1]"
    assert resolved.source == "ipv6"
    assert [url for url, _ in fake_requests.calls] == [IPV4_URL, IPV6_URL]


def test_transport_failures_degrade_to_localhost_with_warning(caplog):
    service, _, console = build_service(
        {
            IPV4_URL: FakeRequestsModule.RequestException("connect timeout"),
            IPV6_URL: FakeRequestsModule.RequestException("network unreachable"),
        }
    )

    with caplog.at_level(logging.WARNING, logger="nocodbsetup.tests"):
        resolved = service.resolve(env_file="/root/nocodb/.env")

    assert resolved.host == "localhost"
    assert resolved.is_fallback
    assert "Using 'localhost'" in caplog.text
    assert any("update nc_public_url" in line.lower() for line in console.lines)


def test_http_error_status_is_treated_as_no_address():
    service, _, _ = build_service(
        {
            IPV4_URL: FakeResponse("203.0.113.5", status_code=503),
            IPV6_URL: FakeResponse("", status_code=200),
        }
    )

    assert service.resolve().host == "localhost"


def test_lookups_are_restricted_to_their_address_family():
    service, fake_requests, _ = build_service(
        {IPV4_URL: FakeResponse(""), IPV6_URL: FakeResponse("2001:db8::1")}
    )

    service.resolve()

    assert fake_requests.calls == [(IPV4_URL, socket.AF_INET), (IPV6_URL, socket.AF_INET6)]
    assert all(session.closed for session in fake_requests.sessions)


@pytest.mark.parametrize(
    "family, source_address",
    [(socket.AF_INET, ("0.0.0.0", 0)), (socket.AF_INET6, ("::", 0))],
)
def test_family_adapter_binds_connections_to_family_wildcard(family, source_address):
    adapter = AddressFamilyAdapter(family)

    assert adapter.poolmanager.connection_pool_kw["source_address"] == source_address


def test_family_session_mounts_adapter_for_both_schemes():
    session = family_session(socket.AF_INET6)

    try:
        for prefix in ("http://", "https://"):
            adapter = session.get_adapter(prefix + "example.test")
            assert isinstance(adapter, AddressFamilyAdapter)
            assert adapter.family == socket.AF_INET6
    finally:
        session.close()


def test_first_resolved_returns_first_non_empty_strategy():
    calls = []

    def strategy(name, value):
        def run():
            calls.append(name)
            return value

        return name, run

    resolved = first_resolved([strategy("a", None), strategy("b", "host"), strategy("c", "other")])

    assert resolved.host == "host"
    assert resolved.source == "b"
    assert calls == ["a", "b"]


def test_first_resolved_returns_none_when_every_strategy_is_empty():
    assert first_resolved([("a", lambda: None), ("b", lambda: "")]) is None
