"""Utility modules for role provisioning."""

from pgrole.utils.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    mask_secret_arn,
    set_request_context,
)

__all__ = [
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "mask_secret_arn",
    "set_request_context",
]
