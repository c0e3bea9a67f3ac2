"""Secrets Manager helpers and the secret store used for role credentials."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Protocol

from botocore.exceptions import ClientError

from pgrole.exceptions import SecretStoreError
from pgrole.services.aws_clients import get_secretsmanager_client
from pgrole.utils.logging import get_logger
from pgrole.utils.logging import mask_secret_arn

logger = get_logger(__name__)

_SECRET_CACHE: dict[str, dict[str, Any]] = {}


def get_secret_json(secret_arn: str, refresh: bool = False) -> dict[str, Any]:
    """Fetch a secret from AWS Secrets Manager and parse JSON.

    Args:
        secret_arn: ARN or name of the secret.
        refresh: Bypass the module cache, e.g. when a password may have
            been rotated since the Lambda container started.
    """
    if not refresh and secret_arn in _SECRET_CACHE:
        return _SECRET_CACHE[secret_arn]

    client = get_secretsmanager_client()
    response = client.get_secret_value(SecretId=secret_arn)
    secret_str = response.get("SecretString")
    if not secret_str and response.get("SecretBinary"):
        secret_str = base64.b64decode(response["SecretBinary"]).decode("utf-8")
    if not secret_str:
        raise RuntimeError("Secret value is empty")

    secret_payload = json.loads(secret_str)
    _SECRET_CACHE[secret_arn] = secret_payload
    return secret_payload


def clear_secret_cache() -> None:
    """Clear cached secrets (useful in tests)."""
    _SECRET_CACHE.clear()


@dataclass(frozen=True)
class SecretDefinition:
    """Everything needed to persist a generated credential."""

    name: str
    description: str
    payload: Mapping[str, Any] = field(repr=False)
    kms_key_id: Optional[str] = None

    def secret_string(self) -> str:
        return json.dumps(dict(self.payload))


class SecretStore(Protocol):
    """Durable storage for generated credentials."""

    def create_secret(self, definition: SecretDefinition) -> str:
        """Persist the secret and return its ARN once it is durable."""
        ...

    def delete_secret(self, secret_arn: str) -> None:
        """Remove the secret without a recovery window."""
        ...


class SecretsManagerSecretStore:
    """SecretStore backed by AWS Secrets Manager."""

    def __init__(self, region_name: str | None = None, client: Any = None):
        self._client = client or get_secretsmanager_client(region_name)

    def create_secret(self, definition: SecretDefinition) -> str:
        kwargs: dict[str, Any] = {
            "Name": definition.name,
            "Description": definition.description,
            "SecretString": definition.secret_string(),
        }
        if definition.kms_key_id:
            kwargs["KmsKeyId"] = definition.kms_key_id
        try:
            response = self._client.create_secret(**kwargs)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            raise SecretStoreError(
                f"Failed to create secret {definition.name}",
                detail=code,
            ) from exc
        secret_arn = response["ARN"]
        logger.info(
            "Created credential secret",
            extra={
                "secret_name": definition.name,
                "secret_arn": mask_secret_arn(secret_arn),
            },
        )
        return secret_arn

    def delete_secret(self, secret_arn: str) -> None:
        try:
            self._client.delete_secret(
                SecretId=secret_arn,
                ForceDeleteWithoutRecovery=True,
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            if code == "ResourceNotFoundException":
                logger.warning(
                    "Credential secret already removed",
                    extra={"secret_arn": mask_secret_arn(secret_arn)},
                )
                return
            raise SecretStoreError(
                f"Failed to delete secret {secret_arn}",
                detail=code,
            ) from exc
        _SECRET_CACHE.pop(secret_arn, None)
        logger.info(
            "Deleted credential secret",
            extra={"secret_arn": mask_secret_arn(secret_arn)},
        )
