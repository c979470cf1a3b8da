import subprocess

import pytest

import nocodbsetup.services.health as health_module
from nocodbsetup.models import HealthReport, SetupSettings
from nocodbsetup.services.docker_runtime import DockerRuntimeService
from nocodbsetup.services.health import HealthCheckService, classify_logs


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def __init__(self):
        self.lines = []

    def print(self, *args, **_kwargs):
        self.lines.append(" ".join(str(arg) for arg in args))


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(health_module.time, "sleep", lambda seconds: sleeps.append(seconds))
    return sleeps


def build_service(requests_module=None, console=None):
    return HealthCheckService(
        logger=DummyLogger(),
        console=console or DummyConsole(),
        docker_runtime_service=DockerRuntimeService(logger=DummyLogger(), console=DummyConsole()),
        requests_module=requests_module or FakeRequestsModule([]),
    )


def fake_docker(ps_output, logs_output):
    def run_cmd(cmd, check=True, capture_output=False):
        if cmd[:2] == ["docker", "ps"]:
            return subprocess.CompletedProcess(cmd, 0, stdout=ps_output, stderr="")
        if cmd[:2] == ["docker", "logs"]:
            return subprocess.CompletedProcess(cmd, 0, stdout=logs_output, stderr="")
        raise AssertionError(f"unexpected command {cmd}")

    return run_cmd


@pytest.mark.parametrize(
    "logs, expected",
    [
        ("NocoDB started on http://localhost:8080", "healthy"),
        ("NocoDB started on 8080\nTypeError: Invalid URL", "incomplete"),
        ("Booting...", "incomplete"),
        ("", "incomplete"),
    ],
)
def test_classify_logs(logs, expected):
    assert classify_logs(logs) == expected


def test_verify_startup_waits_then_reports_healthy(no_sleep):
    settings = SetupSettings(startup_wait_seconds=15)

    report = build_service().verify_startup(
        settings, fake_docker("nocodb\n", "App started\nNocoDB started on port 8080\n")
    )

    assert no_sleep == [15]
    assert report.status == "healthy"
    assert report.probe_ok is None


def test_verify_startup_reports_missing_container():
    report = build_service().verify_startup(SetupSettings(), fake_docker("postgres\n", ""))

    assert report.status == "not_running"
    assert report.healthy is False


def test_verify_startup_reports_error_marker_as_incomplete():
    report = build_service().verify_startup(
        SetupSettings(), fake_docker("nocodb\n", "TypeError [ERR_INVALID_URL]: Invalid URL\n")
    )

    assert report.status == "incomplete"
    assert "Invalid URL" in report.logs


def test_verify_startup_runs_optional_probe():
    fake_requests = FakeRequestsModule([200])
    settings = SetupSettings(port=9090, probe_health=True)

    report = build_service(requests_module=fake_requests).verify_startup(
        settings, fake_docker("nocodb\n", "NocoDB started on port 8080\n")
    )

    assert report.probe_ok is True
    assert fake_requests.calls == ["http://localhost:9090/api/v1/health"]


def test_probe_endpoint_retries_until_success():
    fake_requests = FakeRequestsModule(
        [FakeRequestsModule.RequestException("refused"), 503, 200]
    )

    assert build_service(requests_module=fake_requests).probe_endpoint(
        "http://localhost:8080/api/v1/health", timeout=60, interval=0.01
    )
    assert len(fake_requests.calls) == 3


def test_probe_endpoint_gives_up_after_timeout():
    fake_requests = FakeRequestsModule([503])

    assert (
        build_service(requests_module=fake_requests).probe_endpoint(
            "http://localhost:8080/api/v1/health", timeout=0, interval=0.01
        )
        is False
    )


def test_report_prints_logs_on_incomplete_startup():
    console = DummyConsole()
    report = HealthReport(status="incomplete", logs="Error: Invalid URL")

    build_service(console=console).report(report, SetupSettings(), "http://localhost:8080")

    assert "Error: Invalid URL" in console.lines
    assert any("Startup incomplete" in line for line in console.lines)


def test_report_prints_next_steps_on_success():
    console = DummyConsole()

    build_service(console=console).report(
        HealthReport(status="healthy"), SetupSettings(), "http://203.0.113.5:8080"
    )

    assert "Dashboard: http://203.0.113.5:8080/dashboard" in console.lines
    assert "- Backup: rsync -a /root/nocodb/ /backup/" in console.lines
