"""
nocodb-setup - Provision a self-hosted NocoDB instance with Docker Compose
"""

__version__ = "0.1.0"

from .core import NocoDBSetup, SetupError

__all__ = ["NocoDBSetup", "SetupError"]
