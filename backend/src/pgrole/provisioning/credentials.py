"""Credential generation for database roles.

SECURITY NOTES:
- Passwords are generated with the ``secrets`` module
- The password is handed to the secret store and never returned or logged
- Only the secret ARN is threaded onward to the reconciler
"""

from __future__ import annotations

import secrets
import string
from typing import Any
from typing import Optional

from pgrole.provisioning.models import ENGINE
from pgrole.provisioning.models import Credential
from pgrole.provisioning.models import EncryptionKey
from pgrole.provisioning.models import Endpoint
from pgrole.provisioning.models import RemovalPolicy
from pgrole.services.secrets import SecretDefinition
from pgrole.services.secrets import SecretStore
from pgrole.utils.logging import get_logger

logger = get_logger(__name__)

# Oracle caps passwords at 30 characters; keep the same limit for portability
PASSWORD_LENGTH = 30
EXCLUDED_CHARACTERS = " %+~`#$&*()|[]{}:;<>?!'/@\"\\"
PASSWORD_ALPHABET = "".join(
    char
    for char in string.ascii_letters + string.digits + string.punctuation
    if char not in EXCLUDED_CHARACTERS
)
PASSWORD_KEY = "password"
DEFAULT_SECRET_NAME_PREFIX = "pgrole/"


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a cryptographically secure password.

    Returns:
        A random string of ``length`` characters from PASSWORD_ALPHABET.
    """
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def build_template(
    endpoint: Endpoint,
    role_name: str,
    database_name: Optional[str],
) -> dict[str, Any]:
    """Build the connection metadata stored next to the password."""
    template: dict[str, Any] = {
        "dbClusterIdentifier": endpoint.identifier,
        "engine": ENGINE,
        "host": endpoint.host,
        "port": endpoint.port,
        "username": role_name,
    }
    if database_name is not None:
        template["dbname"] = database_name
    return template


def secret_description(role_name: str) -> str:
    return f"Generated secret for {ENGINE} role {role_name}"


class CredentialProvisioner:
    """Generates role passwords and persists them with their template.

    Args:
        store: Where credentials are persisted.
        removal_policy: Applied to every credential this provisioner creates.
        name_prefix: Prefix of derived secret names when none is given.
    """

    def __init__(
        self,
        store: SecretStore,
        removal_policy: RemovalPolicy = RemovalPolicy.DESTROY,
        name_prefix: str = DEFAULT_SECRET_NAME_PREFIX,
    ):
        self.store = store
        self.removal_policy = removal_policy
        self.name_prefix = name_prefix

    def provision(
        self,
        endpoint: Endpoint,
        role_name: str,
        database_name: Optional[str],
        encryption_key: Optional[EncryptionKey] = None,
        secret_name: Optional[str] = None,
    ) -> Credential:
        """Generate and persist a credential for ``role_name``.

        Returns once the store reports the secret as durable.
        """
        template = build_template(endpoint, role_name, database_name)
        name = secret_name or self._derive_name(role_name)
        definition = SecretDefinition(
            name=name,
            description=secret_description(role_name),
            payload={**template, PASSWORD_KEY: generate_password()},
            kms_key_id=encryption_key.key_arn if encryption_key else None,
        )
        secret_arn = self.store.create_secret(definition)
        logger.info(
            "Provisioned role credential",
            extra={
                "role_name": role_name,
                "secret_arn": secret_arn,
                "encrypted": encryption_key is not None,
            },
        )
        return Credential(
            secret_arn=secret_arn,
            secret_name=name,
            template=template,
            encryption_key=encryption_key,
            removal_policy=self.removal_policy,
        )

    def release(self, credential: Credential) -> bool:
        """Apply the credential's removal policy.

        Returns:
            True if the secret was deleted, False if it was retained.
        """
        if credential.removal_policy is RemovalPolicy.RETAIN:
            logger.info(
                "Retaining role credential",
                extra={"secret_arn": credential.secret_arn},
            )
            return False
        self.store.delete_secret(credential.secret_arn)
        return True

    def _derive_name(self, role_name: str) -> str:
        return f"{self.name_prefix}{role_name}-{secrets.token_hex(4)}"
