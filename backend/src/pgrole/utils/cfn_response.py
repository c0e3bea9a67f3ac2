"""CloudFormation custom resource response helpers."""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from typing import Any
from typing import Mapping
from urllib.parse import urlparse

from pgrole.utils.logging import get_logger

logger = get_logger(__name__)

SUCCESS = "SUCCESS"
FAILED = "FAILED"
_MAX_REASON_LENGTH = 256


def build_response_body(
    event: Mapping[str, Any],
    context: Any,
    status: str,
    data: Mapping[str, Any] | None = None,
    physical_resource_id: str | None = None,
    reason: str | None = None,
    no_echo: bool = False,
) -> dict[str, Any]:
    """Build the JSON document CloudFormation expects at the ResponseURL."""
    if status not in (SUCCESS, FAILED):
        raise ValueError(f"Invalid custom resource status: {status}")
    return {
        "Status": status,
        "Reason": _sanitize_reason(reason, context),
        "PhysicalResourceId": physical_resource_id or _default_physical_id(context),
        "StackId": event.get("StackId", ""),
        "RequestId": event.get("RequestId", ""),
        "LogicalResourceId": event.get("LogicalResourceId", ""),
        "NoEcho": no_echo,
        "Data": dict(data or {}),
    }


def send_cfn_response(
    event: Mapping[str, Any],
    context: Any,
    status: str,
    data: Mapping[str, Any] | None = None,
    physical_resource_id: str | None = None,
    reason: str | None = None,
    no_echo: bool = False,
) -> None:
    """Send a response for a CloudFormation custom resource.

    The body is PUT to the pre-signed S3 ResponseURL from the event.
    """
    response_url = str(event.get("ResponseURL", "")).strip()
    if not response_url:
        raise ValueError("Missing ResponseURL in CloudFormation event")
    _validate_response_url(response_url)

    response_body = build_response_body(
        event,
        context,
        status,
        data=data,
        physical_resource_id=physical_resource_id,
        reason=reason,
        no_echo=no_echo,
    )
    body_bytes = json.dumps(response_body).encode("utf-8")

    request = urllib.request.Request(
        response_url,
        data=body_bytes,
        method="PUT",
        headers={
            "Content-Type": "",
            "Content-Length": str(len(body_bytes)),
        },
    )

    try:
        # URL scheme and host were checked by _validate_response_url()
        with urllib.request.urlopen(  # nosec B310
            request, context=ssl.create_default_context()
        ) as response:
            response.read()
            logger.info(
                "Sent CloudFormation response",
                extra={
                    "status": status,
                    "http_status": response.status,
                    "logical_resource_id": response_body["LogicalResourceId"],
                    "physical_resource_id": response_body["PhysicalResourceId"],
                },
            )
    except urllib.error.URLError:
        logger.error(
            "Failed to send CloudFormation response",
            extra={
                "status": status,
                "logical_resource_id": response_body["LogicalResourceId"],
            },
            exc_info=True,
        )
        raise


def failure_reason(exc: BaseException) -> str:
    """Render an exception as a short CloudFormation failure reason."""
    error_msg = str(exc)
    return f"{type(exc).__name__}: {error_msg[:200]}"


def _default_physical_id(context: Any) -> str:
    log_stream = ""
    if context:
        log_stream = getattr(context, "log_stream_name", "")
    return log_stream or "custom-resource"


def _sanitize_reason(reason: str | None, context: Any) -> str:
    if reason:
        safe_reason = reason
    else:
        log_stream = ""
        if context:
            log_stream = getattr(context, "log_stream_name", "")
        safe_reason = f"See CloudWatch Logs: {log_stream}" if log_stream else "See logs"
    return safe_reason[:_MAX_REASON_LENGTH]


def _validate_response_url(response_url: str) -> None:
    parsed = urlparse(response_url)
    if parsed.scheme != "https":
        raise ValueError("CloudFormation ResponseURL must use https")
    hostname = parsed.hostname or ""
    if not hostname:
        raise ValueError("CloudFormation ResponseURL is missing hostname")
    allowed_suffixes = (".amazonaws.com", ".amazonaws.com.cn")
    if not hostname.endswith(allowed_suffixes):
        raise ValueError("CloudFormation ResponseURL hostname is invalid")
