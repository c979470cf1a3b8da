"""Subprocess execution service for nocodb-setup."""

import subprocess
from typing import List, Optional

from nocodbsetup.errors import SetupError
from nocodbsetup.errors_catalog import actionable_error


class CommandRunner:
    """Runs external commands and hands back their result for inspection.

    With ``check=True`` a non-zero exit aborts the run with :class:`SetupError`.
    With ``check=False`` the caller decides what a failure means, which is how
    tolerated steps (stopping an instance that is not running) are expressed.
    """

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise SetupError(actionable_error("command_not_found", command=cmd[0])) from exc
        except subprocess.TimeoutExpired as exc:
            raise SetupError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc
        except OSError as exc:
            raise SetupError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise SetupError(message)

        self.logger.debug(message)
        return result
