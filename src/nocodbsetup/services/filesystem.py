"""Filesystem helpers for nocodb-setup."""

import logging
import os
import shutil
import sys

from rich.console import Console

from nocodbsetup.errors import SetupError


class FileSystemService:
    """Encapsulates file and directory side effects under the base directory."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except Exception as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def ensure_dir(self, path: str):
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            raise SetupError(f"Could not create directory '{path}': {exc}") from exc
        self.logger.debug("Ensured directory: %s", path)

    def cleanup_dir(self, path: str):
        if os.path.exists(path):
            try:
                shutil.rmtree(path)
                self.logger.debug("Removed directory: %s", path)
            except Exception as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)

    def prepare_data_dir(self, path: str, mode: int, reset: bool):
        """Recreate the data directory (or keep it) and open it up for the container."""
        if reset:
            self.cleanup_dir(path)
        self.ensure_dir(path)
        self.set_permissions(path, mode)
