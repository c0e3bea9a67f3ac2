"""Provisioning of PostgreSQL roles with generated Secrets Manager credentials."""

__version__ = "0.1.0"
