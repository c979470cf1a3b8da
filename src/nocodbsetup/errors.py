"""Domain errors for nocodb-setup."""


class SetupError(RuntimeError):
    """Raised when provisioning cannot continue safely."""
