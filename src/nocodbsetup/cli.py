import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_BASE_DIR,
    DEFAULT_CONTAINER_NAME,
    DEFAULT_IMAGE,
    DEFAULT_PORT,
    DETECT_TIMEOUT_SECONDS,
    IPV4_DETECT_URL,
    IPV6_DETECT_URL,
    LOG_TAIL_LINES,
    PROBE_TIMEOUT_SECONDS,
    STARTUP_WAIT_SECONDS,
)
from .core import NocoDBSetup, SetupError
from .services.config_loader import ConfigLoader

DEFAULT_CONFIG_FILE = ".nocodb-setup.yml"


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--base-dir",
    required=False,
    type=click.Path(file_okay=False),
    help=f"Directory for .env, docker-compose.yml and data/ (default: {DEFAULT_BASE_DIR}).",
)
@click.option(
    "--port",
    required=False,
    type=int,
    default=None,
    help=f"Host port published for NocoDB and used in NC_PUBLIC_URL (default: {DEFAULT_PORT}).",
)
@click.option("--image", required=False, help=f"NocoDB image reference (default: {DEFAULT_IMAGE}).")
@click.option(
    "--keep-data",
    is_flag=True,
    default=None,
    help="Keep the existing data directory instead of wiping it before start.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help=(
        "Resolve the public URL and print the generated files "
        "without writing them or touching Docker."
    ),
)
@click.option(
    "--probe-health",
    is_flag=True,
    default=None,
    help="Also poll NocoDB's health endpoint after start.",
)
@click.option(
    "--startup-wait",
    required=False,
    type=float,
    default=None,
    help=f"Seconds to wait before the health check (default: {STARTUP_WAIT_SECONDS:g}).",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    config,
    base_dir,
    port,
    image,
    keep_data,
    dry_run,
    probe_health,
    startup_wait,
    verbose,
    log_file,
):
    """Provision a self-hosted NocoDB instance with Docker Compose."""
    logger = logging.getLogger("nocodbsetup")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except SetupError as exc:
        raise click.ClickException(str(exc)) from exc

    base_dir = _resolve_option(base_dir, config_values, "base_dir", default=DEFAULT_BASE_DIR)
    port = int(_resolve_option(port, config_values, "port", default=DEFAULT_PORT))
    image = _resolve_option(image, config_values, "image", default=DEFAULT_IMAGE)
    container_name = _resolve_option(
        None, config_values, "container_name", default=DEFAULT_CONTAINER_NAME
    )
    ipv4_detect_url = _resolve_option(
        None, config_values, "ipv4_detect_url", default=IPV4_DETECT_URL
    )
    ipv6_detect_url = _resolve_option(
        None, config_values, "ipv6_detect_url", default=IPV6_DETECT_URL
    )
    detect_timeout = float(
        _resolve_option(None, config_values, "detect_timeout", default=DETECT_TIMEOUT_SECONDS)
    )
    if keep_data:
        reset_data = False
    else:
        reset_data = bool(_resolve_option(None, config_values, "reset_data", default=True))
    startup_wait_seconds = float(
        _resolve_option(
            startup_wait,
            config_values,
            "startup_wait_seconds",
            default=STARTUP_WAIT_SECONDS,
        )
    )
    log_tail_lines = int(
        _resolve_option(None, config_values, "log_tail_lines", default=LOG_TAIL_LINES)
    )
    probe_health = bool(_resolve_option(probe_health, config_values, "probe_health", default=False))
    probe_timeout_seconds = float(
        _resolve_option(
            None,
            config_values,
            "probe_timeout_seconds",
            default=PROBE_TIMEOUT_SECONDS,
        )
    )
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        setup = NocoDBSetup(
            base_dir=base_dir,
            port=port,
            image=image,
            container_name=container_name,
            ipv4_detect_url=ipv4_detect_url,
            ipv6_detect_url=ipv6_detect_url,
            detect_timeout=detect_timeout,
            reset_data=reset_data,
            startup_wait_seconds=startup_wait_seconds,
            log_tail_lines=log_tail_lines,
            probe_health=probe_health,
            probe_timeout_seconds=probe_timeout_seconds,
            dry_run=dry_run,
        )
    except SetupError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(setup.run())


if __name__ == "__main__":
    main()
