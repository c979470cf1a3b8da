"""Docker runtime services for nocodb-setup."""

import subprocess
from typing import Callable, List

from nocodbsetup.errors import SetupError
from nocodbsetup.errors_catalog import actionable_error


class DockerRuntimeService:
    """Manages docker-compose detection and the NocoDB container lifecycle."""

    def __init__(self, logger, console, subprocess_module=subprocess):
        self.logger = logger
        self.console = console
        self.subprocess = subprocess_module

    def get_docker_compose_cmd(self) -> List[str]:
        try:
            self.subprocess.run(["docker", "compose", "version"], check=True, capture_output=True)
            return ["docker", "compose"]
        except (self.subprocess.CalledProcessError, FileNotFoundError):
            try:
                self.subprocess.run(["docker-compose", "--version"], check=True, capture_output=True)
                return ["docker-compose"]
            except (self.subprocess.CalledProcessError, FileNotFoundError):
                raise SetupError(actionable_error("compose_unavailable"))

    def validate_environment(self, compose_cmd: List[str], run_cmd: Callable):
        self.console.print("[blue]Validating Docker environment...[/blue]")
        run_cmd(["docker", "--version"], capture_output=True)
        run_cmd(compose_cmd + ["version"], capture_output=True)
        self.console.print("[green]Docker is available.[/green]")

    def stop_instance(self, compose_cmd: List[str], compose_file: str, run_cmd: Callable) -> bool:
        """Bring down a previous deployment. A missing one is not an error."""
        self.console.print("[dim]Cleaning up old setup...[/dim]")
        self.logger.info("Stopping previous instance...")

        result = run_cmd(
            compose_cmd + ["-f", compose_file, "down"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            self.logger.debug("No previous instance stopped (exit %s).", result.returncode)
            return False
        return True

    def start_instance(self, compose_cmd: List[str], compose_file: str, run_cmd: Callable):
        self.console.print("[blue]Starting NocoDB...[/blue]")
        self.logger.info("Starting NocoDB...")
        run_cmd(compose_cmd + ["-f", compose_file, "up", "-d"], check=True)

    def list_running_containers(self, run_cmd: Callable) -> List[str]:
        result = run_cmd(
            ["docker", "ps", "--format", "{{.Names}}"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return []
        return [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]

    def is_container_running(self, container_name: str, run_cmd: Callable) -> bool:
        return container_name in self.list_running_containers(run_cmd)

    def fetch_logs(self, container_name: str, tail: int, run_cmd: Callable) -> str:
        result = run_cmd(
            ["docker", "logs", "--tail", str(tail), container_name],
            check=False,
            capture_output=True,
        )
        # docker logs replays the container's stderr on its own stderr.
        return "\n".join(
            part.rstrip("\n") for part in (result.stdout, result.stderr) if part
        )
