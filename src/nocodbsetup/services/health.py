"""Post-start health check for nocodb-setup.

The primary check is a heuristic: it greps the container's recent log lines for
a known success marker and a known error marker. It is not a readiness
protocol. The optional endpoint probe asks NocoDB itself and is reported next
to the heuristic without changing the exit status.
"""

import time
from typing import Callable

import requests
from rich.markup import escape

from nocodbsetup.constants import (
    ERROR_MARKER,
    HEALTH_ENDPOINT_PATH,
    PROBE_INTERVAL_SECONDS,
    SUCCESS_MARKER,
)
from nocodbsetup.errors_catalog import actionable_error
from nocodbsetup.models import HealthReport


def classify_logs(
    logs: str,
    success_marker: str = SUCCESS_MARKER,
    error_marker: str = ERROR_MARKER,
) -> str:
    if success_marker in logs and error_marker not in logs:
        return "healthy"
    return "incomplete"


class HealthCheckService:
    """Waits, then decides whether the freshly started container looks healthy."""

    def __init__(self, logger, console, docker_runtime_service, requests_module=requests):
        self.logger = logger
        self.console = console
        self.docker_runtime_service = docker_runtime_service
        self.requests = requests_module

    def verify_startup(self, settings, run_cmd: Callable) -> HealthReport:
        self.console.print(
            f"[yellow]Waiting {settings.startup_wait_seconds:g}s for NocoDB to start...[/yellow]"
        )
        time.sleep(settings.startup_wait_seconds)

        if not self.docker_runtime_service.is_container_running(settings.container_name, run_cmd):
            return HealthReport(status="not_running")

        logs = self.docker_runtime_service.fetch_logs(
            settings.container_name,
            settings.log_tail_lines,
            run_cmd,
        )
        status = classify_logs(logs)

        probe_ok = None
        if settings.probe_health:
            probe_ok = self.probe_endpoint(
                f"http://localhost:{settings.port}{HEALTH_ENDPOINT_PATH}",
                timeout=settings.probe_timeout_seconds,
            )

        return HealthReport(status=status, logs=logs, probe_ok=probe_ok)

    def probe_endpoint(
        self,
        url: str,
        timeout: float,
        interval: float = PROBE_INTERVAL_SECONDS,
    ) -> bool:
        self.logger.info("Probing %s", url)
        deadline = time.monotonic() + timeout

        while True:
            try:
                response = self.requests.get(url, timeout=max(interval, 1.0))
                if 200 <= response.status_code < 300:
                    return True
                self.logger.debug("Health endpoint answered %s", response.status_code)
            except self.requests.RequestException as exc:
                self.logger.debug("Health endpoint not reachable yet: %s", exc)

            if time.monotonic() >= deadline:
                return False
            time.sleep(interval)

    def report(self, health: HealthReport, settings, public_url: str):
        container = settings.container_name

        if health.status == "not_running":
            message = actionable_error("container_not_running", container=container)
            self.logger.warning(message)
            self.console.print(f"[bold red]{escape(message)}[/bold red]")
            return

        if health.probe_ok is not None:
            if health.probe_ok:
                self.console.print("[green]Health endpoint responded.[/green]")
            else:
                self.logger.warning("Health endpoint did not respond in time.")
                self.console.print("[yellow]Health endpoint did not respond in time.[/yellow]")

        if not health.healthy:
            message = actionable_error(
                "startup_incomplete",
                container=container,
                env_file=settings.env_file,
            )
            self.logger.warning(message)
            self.console.print("[bold red]Startup incomplete. Recent logs:[/bold red]")
            self.console.print(health.logs, markup=False, highlight=False)
            self.console.print(f"[bold red]{escape(message)}[/bold red]")
            return

        self.logger.info("NocoDB is running at %s", public_url)
        self.console.print("[green]Success! NocoDB is running.[/green]")
        self.console.print(f"URL: {public_url}", markup=False)
        self.console.print(f"Dashboard: {public_url}/dashboard", markup=False)
        self.console.print("")
        self.console.print(f"Full logs: docker logs -f {container}", markup=False)
        self.console.print("")
        self.console.print("[green]Next steps:[/green]")
        self.console.print(f"- Access {public_url} and complete setup.", markup=False)
        self.console.print(
            "- For production: Add NGINX/SSL, update NC_PUBLIC_URL to "
            "https://your-domain.com (avoids IPv6 issues).",
            markup=False,
        )
        self.console.print(
            f"- Backup: rsync -a {settings.base_dir.rstrip('/')}/ /backup/",
            markup=False,
        )
        self.console.print(f"- Test IPv6 access: curl -6 '{public_url}'", markup=False)
