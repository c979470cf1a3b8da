"""Actionable error catalog for nocodb-setup."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "invalid_public_url": {
        "what": "Public URL '{url}' is invalid: {reason}.",
        "next": (
            "Edit {env_file} manually and set NC_PUBLIC_URL to a valid format "
            "(e.g., http://[your-ipv6]:8080)."
        ),
    },
    "compose_unavailable": {
        "what": "Docker Compose is not available.",
        "next": "Install Docker Compose v2 (`docker compose`) or v1 (`docker-compose`) and try again.",
    },
    "command_not_found": {
        "what": "Required command not found: {command}.",
        "next": "Install it and make sure it is on PATH, then run the setup again.",
    },
    "public_ip_fallback": {
        "what": "Could not detect a valid public IP. Using 'localhost'.",
        "next": "Update NC_PUBLIC_URL in {env_file} manually!",
    },
    "container_not_running": {
        "what": "Container '{container}' failed to start.",
        "next": "Check: docker logs {container}",
    },
    "startup_incomplete": {
        "what": "Startup of '{container}' looks incomplete.",
        "next": (
            "If 'Invalid URL' persists, edit {env_file} manually and restart: "
            "docker compose restart"
        ),
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
