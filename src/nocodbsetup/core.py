import logging
import subprocess
from typing import List, Optional

import requests
from rich.console import Console
from rich.markup import escape

from .constants import (
    DATA_DIR_MODE,
    DEFAULT_BASE_DIR,
    DEFAULT_CONTAINER_NAME,
    DEFAULT_IMAGE,
    DEFAULT_PORT,
    DETECT_TIMEOUT_SECONDS,
    IPV4_DETECT_URL,
    IPV6_DETECT_URL,
    LOG_TAIL_LINES,
    PROBE_TIMEOUT_SECONDS,
    SECRET_LENGTH,
    STARTUP_WAIT_SECONDS,
)
from .errors import SetupError
from .models import HealthReport, ResolvedHost, SetupSettings
from .services.address import AddressResolverService
from .services.command_runner import CommandRunner
from .services.config_files import ConfigurationEmitter, render_compose_file, render_env_file
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.health import HealthCheckService
from .services.secret import generate_secret
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("nocodbsetup")


class NocoDBSetup:
    def __init__(
        self,
        base_dir: str = DEFAULT_BASE_DIR,
        port: int = DEFAULT_PORT,
        image: str = DEFAULT_IMAGE,
        container_name: str = DEFAULT_CONTAINER_NAME,
        ipv4_detect_url: str = IPV4_DETECT_URL,
        ipv6_detect_url: str = IPV6_DETECT_URL,
        detect_timeout: float = DETECT_TIMEOUT_SECONDS,
        reset_data: bool = True,
        startup_wait_seconds: float = STARTUP_WAIT_SECONDS,
        log_tail_lines: int = LOG_TAIL_LINES,
        probe_health: bool = False,
        probe_timeout_seconds: float = PROBE_TIMEOUT_SECONDS,
        dry_run: bool = False,
    ):
        if not 1 <= int(port) <= 65535:
            raise SetupError(f"Port must be between 1 and 65535, got {port}.")
        if not container_name or not container_name.strip():
            raise SetupError("Container name must not be empty.")
        if startup_wait_seconds < 0:
            raise SetupError("Startup wait must not be negative.")

        self.settings = SetupSettings(
            base_dir=base_dir,
            port=int(port),
            image=image,
            container_name=container_name.strip(),
            ipv4_detect_url=ipv4_detect_url,
            ipv6_detect_url=ipv6_detect_url,
            detect_timeout=float(detect_timeout),
            reset_data=reset_data,
            startup_wait_seconds=float(startup_wait_seconds),
            log_tail_lines=int(log_tail_lines),
            probe_health=probe_health,
            probe_timeout_seconds=float(probe_timeout_seconds),
            dry_run=dry_run,
        )
        self.dry_run = dry_run
        self.compose_cmd: Optional[List[str]] = None
        self.current_step_name: Optional[str] = None

        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.command_runner = CommandRunner(logger=logger)
        self.address_service = AddressResolverService(
            logger=logger,
            console=console,
            requests_module=requests,
            ipv4_url=self.settings.ipv4_detect_url,
            ipv6_url=self.settings.ipv6_detect_url,
            timeout=self.settings.detect_timeout,
        )
        self.validation_service = ValidationService(env_file=self.settings.env_file)
        self.config_emitter = ConfigurationEmitter(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            subprocess_module=subprocess,
        )
        self.health_service = HealthCheckService(
            logger=logger,
            console=console,
            docker_runtime_service=self.docker_runtime_service,
            requests_module=requests,
        )

    def _run_step(self, name: str, callback, *args, **kwargs):
        logger.debug("Step started: %s", name)
        self.current_step_name = name
        result = callback(*args, **kwargs)
        self.current_step_name = None
        logger.debug("Step finished: %s", name)
        return result

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output)

    def _get_docker_compose_cmd(self) -> List[str]:
        return self.docker_runtime_service.get_docker_compose_cmd()

    def validate_docker_environment(self):
        self.compose_cmd = self._get_docker_compose_cmd()
        self.docker_runtime_service.validate_environment(self.compose_cmd, self._run_cmd)

    def prepare_workspace(self):
        console.print(f"[blue]Creating {self.settings.base_dir} folder...[/blue]")
        logger.info("Preparing workspace at %s", self.settings.base_dir)
        self.filesystem_service.ensure_dir(self.settings.base_dir)

    def resolve_public_host(self) -> ResolvedHost:
        return self.address_service.resolve(env_file=self.settings.env_file)

    def build_public_url(self, host: str) -> str:
        public_url = self.validation_service.build_public_url(host, self.settings.port)
        console.print(f"[blue]Validating URL: {escape(public_url)}[/blue]")
        self.validation_service.validate_public_url(public_url)
        console.print("[green]URL valid![/green]")
        return public_url

    def generate_secret(self) -> str:
        console.print("[blue]Generating strong JWT secret...[/blue]")
        return generate_secret(SECRET_LENGTH)

    def write_configuration(self, secret: str, public_url: str):
        self.config_emitter.write_configuration(self.settings, secret=secret, public_url=public_url)

    def preview_configuration(self, secret: str, public_url: str):
        console.print(f"[bold blue]Dry run: {self.settings.env_file}[/bold blue]")
        console.print(
            render_env_file(secret="*" * len(secret), public_url=public_url),
            markup=False,
            highlight=False,
        )
        console.print(f"[bold blue]Dry run: {self.settings.compose_file}[/bold blue]")
        console.print(render_compose_file(self.settings), markup=False, highlight=False)

    def stop_previous_instance(self) -> bool:
        return self.docker_runtime_service.stop_instance(
            self.compose_cmd,
            self.settings.compose_file,
            self._run_cmd,
        )

    def reset_data_directory(self):
        if self.settings.reset_data:
            logger.info("Resetting data directory %s", self.settings.data_dir)
        self.filesystem_service.prepare_data_dir(
            self.settings.data_dir,
            DATA_DIR_MODE,
            reset=self.settings.reset_data,
        )

    def start_instance(self):
        self.docker_runtime_service.start_instance(
            self.compose_cmd,
            self.settings.compose_file,
            self._run_cmd,
        )

    def verify_startup(self) -> HealthReport:
        return self.health_service.verify_startup(self.settings, self._run_cmd)

    def run(self) -> int:
        exit_code = 1

        try:
            console.print("[green]Starting NocoDB setup...[/green]")
            logger.info("Starting NocoDB setup...")

            if not self.dry_run:
                self._run_step("validate_docker_environment", self.validate_docker_environment)
                self._run_step("prepare_workspace", self.prepare_workspace)

            resolved = self._run_step("resolve_public_host", self.resolve_public_host)
            public_url = self._run_step("build_public_url", self.build_public_url, resolved.host)
            secret = self._run_step("generate_secret", self.generate_secret)

            if self.dry_run:
                self._run_step(
                    "preview_configuration",
                    self.preview_configuration,
                    secret,
                    public_url,
                )
                console.print("[yellow]Dry run complete. Nothing written, Docker untouched.[/yellow]")
                exit_code = 0
                return exit_code

            self._run_step("write_configuration", self.write_configuration, secret, public_url)
            self._run_step("stop_previous_instance", self.stop_previous_instance)
            self._run_step("reset_data_directory", self.reset_data_directory)
            self._run_step("start_instance", self.start_instance)

            health = self._run_step("verify_startup", self.verify_startup)
            self.health_service.report(health, self.settings, public_url)

            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            exit_code = 1
            return exit_code
        except SetupError as exc:
            console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
            if self.current_step_name:
                logger.error("Step '%s' failed: %s", self.current_step_name, exc)
            else:
                logger.error(str(exc))
            exit_code = 1
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(exc))}")
            logger.exception("Unexpected error")
            exit_code = 1
            return exit_code
