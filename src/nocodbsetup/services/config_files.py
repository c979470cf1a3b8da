"""Environment and compose file emission for nocodb-setup."""

import json
import os
import tempfile

from rich.markup import escape

from nocodbsetup.constants import (
    COMPOSE_FILE_MODE,
    CONTAINER_DATA_DIR,
    CONTAINER_PORT,
    DATA_DIR_NAME,
    DB_URL,
    ENV_FILE_MODE,
    ENV_FILE_NAME,
    NETWORK_NAME,
)
from nocodbsetup.errors import SetupError


def render_env_file(secret: str, public_url: str, db_url: str = DB_URL) -> str:
    return f"""# NocoDB Environment - Auto-generated by nocodb-setup
# =============================================
# Security: JWT secret for auth tokens
NC_AUTH_JWT_SECRET={secret}

# Database: SQLite with absolute file URL to avoid "Invalid URL" errors
NC_DB=sqlite
NC_DB_URL={db_url}

# Public URL: IPv6 hosts are bracketed. Required for emails, API links, etc.
# Update to your domain/HTTPS later! (e.g., https://your-domain.com)
NC_PUBLIC_URL={public_url}

# Optional: Uncomment/add if using SMTP for emails
# NC_SMTP_HOST=smtp.gmail.com
# NC_SMTP_PORT=587
# NC_SMTP_SECURE=false  # true for 465
# NC_SMTP_USER=your-email@gmail.com
# NC_SMTP_PASS=your-app-password
# NC_FROM_EMAIL=noreply@your-domain.com

# Optional: For production security
# NC_DISABLE_SIGNUP=true  # Disable public signups
"""


def _quoted(value: str) -> str:
    # JSON strings are valid YAML double-quoted scalars.
    return json.dumps(value)


def render_compose_file(settings) -> str:
    return f"""services:
  nocodb:
    image: {_quoted(settings.image)}
    container_name: {_quoted(settings.container_name)}
    restart: unless-stopped
    ports:
      - "{settings.port}:{CONTAINER_PORT}"
    env_file:
      - {ENV_FILE_NAME}
    environment:
      # .env overrides this fallback
      NC_DB: "sqlite"
    volumes:
      - ./{DATA_DIR_NAME}:{CONTAINER_DATA_DIR}
    networks:
      - {NETWORK_NAME}

networks:
  {NETWORK_NAME}:
    driver: bridge

volumes:
  {DATA_DIR_NAME}:
"""


class ConfigurationEmitter:
    """Writes the environment and compose files, replacing any previous copy."""

    def __init__(self, logger, console, filesystem_service):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service

    def write_file(self, path: str, content: str, mode: int):
        directory = os.path.dirname(path) or "."
        fd, temp_path = tempfile.mkstemp(prefix=".nocodb-setup-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
            os.replace(temp_path, path)
        except OSError as exc:
            raise SetupError(f"Could not write '{path}': {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

        self.filesystem_service.set_permissions(path, mode)
        self.logger.debug("Wrote %s", path)

    def write_configuration(self, settings, secret: str, public_url: str):
        self.write_file(
            settings.env_file,
            render_env_file(secret=secret, public_url=public_url),
            ENV_FILE_MODE,
        )
        self.console.print(
            f"[green]Generated {ENV_FILE_NAME} (NC_PUBLIC_URL: {escape(public_url)}).[/green]"
        )

        self.write_file(settings.compose_file, render_compose_file(settings), COMPOSE_FILE_MODE)
        self.console.print(f"[green]Generated {os.path.basename(settings.compose_file)}.[/green]")
