"""Lambda handler that reconciles PostgreSQL roles for CloudFormation.

Custom resource properties:
- RoleName: name of the database role
- PasswordArn: Secrets Manager secret holding the role password
- DatabaseName: optional database the role may connect to

SECURITY NOTES:
- Role passwords are read from Secrets Manager and never logged
- Only role names and database names are logged
"""

from __future__ import annotations

from typing import Any
from typing import Mapping
from typing import Optional

from pgrole.db.connection import connect
from pgrole.db.connection import get_database_url
from pgrole.db.connection import run_with_retry
from pgrole.db.roles import drop_role
from pgrole.db.roles import ensure_role
from pgrole.db.roles import validate_role_name
from pgrole.exceptions import ReconciliationError
from pgrole.services.secrets import get_secret_json
from pgrole.utils.cfn_response import FAILED
from pgrole.utils.cfn_response import SUCCESS
from pgrole.utils.cfn_response import failure_reason
from pgrole.utils.cfn_response import send_cfn_response
from pgrole.utils.logging import clear_request_context
from pgrole.utils.logging import configure_logging
from pgrole.utils.logging import get_logger
from pgrole.utils.logging import set_request_context

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Handle CloudFormation Create, Update and Delete events for a role."""
    set_request_context(
        req_id=getattr(context, "aws_request_id", None),
        corr_id=event.get("RequestId"),
    )
    request_type = event.get("RequestType")
    props = event.get("ResourceProperties") or {}
    physical_id = str(event.get("PhysicalResourceId") or props.get("RoleName") or "")

    try:
        if request_type in ("Create", "Update"):
            physical_id = _handle_upsert(props)
            data = {"RoleName": physical_id}
        elif request_type == "Delete":
            data = _handle_delete(props)
        else:
            raise ReconciliationError(f"Unsupported request type: {request_type}")

        send_cfn_response(event, context, SUCCESS, data, physical_id or None)
        return {"PhysicalResourceId": physical_id, "Data": data}
    except Exception as exc:
        logger.error(
            "Role reconciliation failed",
            extra={
                "request_type": request_type,
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
        data = {"status": "failed", "error_type": type(exc).__name__}
        send_cfn_response(
            event,
            context,
            FAILED,
            data,
            physical_id or None,
            failure_reason(exc),
        )
        return {"PhysicalResourceId": physical_id, "Data": data}
    finally:
        clear_request_context()


def _handle_upsert(props: Mapping[str, Any]) -> str:
    role_name = validate_role_name(_require(props, "RoleName"))
    password_arn = _require(props, "PasswordArn")
    database_name = _optional(props, "DatabaseName")

    password = _load_password(password_arn)
    database_url = get_database_url()
    logger.info(
        "Reconciling database role",
        extra={"db_role": role_name, "database": database_name},
    )
    run_with_retry(_apply_role, database_url, role_name, password, database_name)
    # A new RoleName gives a new physical id, so CloudFormation drops the old role
    return role_name


def _handle_delete(props: Mapping[str, Any]) -> dict[str, Any]:
    role_name = _optional(props, "RoleName")
    if not role_name:
        logger.info("Delete request without RoleName, nothing to remove")
        return {"status": "skipped"}
    validate_role_name(role_name)
    database_name = _optional(props, "DatabaseName")
    database_url = get_database_url()
    run_with_retry(_remove_role, database_url, role_name, database_name)
    return {"RoleName": role_name, "status": "deleted"}


def _apply_role(
    database_url: str,
    role_name: str,
    password: str,
    database_name: Optional[str],
) -> None:
    with connect(database_url) as connection:
        ensure_role(connection, role_name, password, database_name)


def _remove_role(
    database_url: str,
    role_name: str,
    database_name: Optional[str],
) -> None:
    with connect(database_url) as connection:
        drop_role(connection, role_name, database_name)


def _load_password(password_arn: str) -> str:
    payload = get_secret_json(password_arn, refresh=True)
    password = payload.get("password")
    if not password:
        raise ReconciliationError("Secret is missing the role password")
    return str(password)


def _require(props: Mapping[str, Any], key: str) -> str:
    value = _optional(props, key)
    if not value:
        raise ReconciliationError(f"Missing resource property: {key}")
    return value


def _optional(props: Mapping[str, Any], key: str) -> Optional[str]:
    value = props.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None
