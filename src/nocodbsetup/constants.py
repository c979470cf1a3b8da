"""Built-in defaults for nocodb-setup."""

DEFAULT_BASE_DIR = "/root/nocodb"
DEFAULT_PORT = 8080
CONTAINER_PORT = 8080
DEFAULT_IMAGE = "nocodb/nocodb:0.263.1"
DEFAULT_CONTAINER_NAME = "nocodb"
NETWORK_NAME = "nocodb-net"

ENV_FILE_NAME = ".env"
COMPOSE_FILE_NAME = "docker-compose.yml"
DATA_DIR_NAME = "data"
CONTAINER_DATA_DIR = "/usr/app/data"
DB_URL = "file:///usr/app/data/nocodb.sqlite"

IPV4_DETECT_URL = "https://ifconfig.me/ip"
IPV6_DETECT_URL = "https://ifconfig.me/ip"
DETECT_TIMEOUT_SECONDS = 10.0
FALLBACK_HOST = "localhost"

SECRET_LENGTH = 64

ENV_FILE_MODE = 0o600
COMPOSE_FILE_MODE = 0o644
DATA_DIR_MODE = 0o777

STARTUP_WAIT_SECONDS = 15.0
LOG_TAIL_LINES = 30
SUCCESS_MARKER = "NocoDB started on"
ERROR_MARKER = "Invalid URL"
HEALTH_ENDPOINT_PATH = "/api/v1/health"
PROBE_TIMEOUT_SECONDS = 60.0
PROBE_INTERVAL_SECONDS = 2.0
