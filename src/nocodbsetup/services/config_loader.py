"""Configuration loader for nocodb-setup."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from nocodbsetup.errors import SetupError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "base_dir",
        "port",
        "image",
        "container_name",
        "ipv4_detect_url",
        "ipv6_detect_url",
        "detect_timeout",
        "reset_data",
        "startup_wait_seconds",
        "log_tail_lines",
        "probe_health",
        "probe_timeout_seconds",
        "dry_run",
        "verbose",
        "log_file",
    }

    INTEGER_KEYS = {"port", "log_tail_lines"}
    NUMBER_KEYS = {"detect_timeout", "startup_wait_seconds", "probe_timeout_seconds"}

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise SetupError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise SetupError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise SetupError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise SetupError(f"Unknown configuration keys: {unknown_list}")

        return self._coerce_numbers(parsed)

    def _coerce_numbers(self, values: Dict[str, Any]) -> Dict[str, Any]:
        coerced = dict(values)
        for key, value in values.items():
            if key in self.INTEGER_KEYS:
                converter = int
            elif key in self.NUMBER_KEYS:
                converter = float
            else:
                continue

            message = f"Invalid value for '{key}': expected a number, got {value!r}"
            if isinstance(value, bool):
                raise SetupError(message)
            try:
                coerced[key] = converter(value)
            except (TypeError, ValueError) as exc:
                raise SetupError(message) from exc
        return coerced
