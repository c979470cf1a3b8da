"""Service layer for nocodb-setup."""
