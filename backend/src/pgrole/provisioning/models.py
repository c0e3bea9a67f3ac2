"""Data model for role provisioning.

Handles (databases, keys, identities) are plain frozen dataclasses carrying
the identifiers the deployment needs. Topologies expose a single
``endpoint()`` capability so the resolver never has to probe types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Protocol
from typing import runtime_checkable

ENGINE = "postgres"

READ_SECRET_ACTIONS = (
    "secretsmanager:GetSecretValue",
    "secretsmanager:DescribeSecret",
)
DECRYPT_ACTIONS = ("kms:Decrypt",)


class RemovalPolicy(str, enum.Enum):
    """What happens to a generated secret when its role is removed."""

    DESTROY = "destroy"
    RETAIN = "retain"


class OrchestratorState(str, enum.Enum):
    """Steps of a single provisioning pass."""

    VALIDATING = "validating"
    RESOLVING = "resolving"
    PROVISIONING = "provisioning"
    BINDING = "binding"
    DELEGATED = "delegated"


@dataclass(frozen=True)
class Endpoint:
    """Resolved connection coordinates of a database topology."""

    host: str
    port: int
    identifier: str


@runtime_checkable
class DatabaseTopology(Protocol):
    """A database deployment that can report its writer endpoint."""

    def endpoint(self) -> Endpoint: ...


@dataclass(frozen=True)
class SingleInstance:
    """A single-node database instance."""

    host: str
    port: int
    instance_identifier: str

    def endpoint(self) -> Endpoint:
        return Endpoint(self.host, self.port, self.instance_identifier)


@dataclass(frozen=True)
class Cluster:
    """A multi-node cluster addressed through its writer endpoint."""

    host: str
    port: int
    cluster_identifier: str

    def endpoint(self) -> Endpoint:
        return Endpoint(self.host, self.port, self.cluster_identifier)


@dataclass(frozen=True)
class ManagedDatabase:
    """Handle to a database managed elsewhere in the deployment."""

    database_name: str


@dataclass(frozen=True)
class EncryptionKey:
    """Handle to a KMS key."""

    key_arn: str


@dataclass(frozen=True)
class ExecutionIdentity:
    """IAM role the reconciler Lambda runs as."""

    role_arn: str


@dataclass(frozen=True)
class Provider:
    """A reconciler deployment bound to one database topology.

    Attributes:
        topology: The database the reconciler manages roles in.
        identity: Execution identity of the reconciler.
        service_token: ARN invoked by CloudFormation for role events.
    """

    topology: Any
    identity: ExecutionIdentity
    service_token: str


@dataclass(frozen=True)
class RoleSpec:
    """Input descriptor for a role.

    Exactly one of ``database`` and ``database_name`` must be given.
    """

    role_name: str
    database: Optional[ManagedDatabase] = None
    database_name: Optional[str] = None
    encryption_key: Optional[EncryptionKey] = None
    secret_name: Optional[str] = None

    @property
    def target_database_name(self) -> Optional[str]:
        if self.database is not None:
            return self.database.database_name
        return self.database_name


@dataclass(frozen=True)
class Credential:
    """Handle to a persisted credential.

    The password itself never leaves the secret store; only the ARN
    is threaded onward.
    """

    secret_arn: str
    secret_name: str
    template: Mapping[str, Any]
    encryption_key: Optional[EncryptionKey]
    removal_policy: RemovalPolicy

    def __post_init__(self) -> None:
        object.__setattr__(self, "template", MappingProxyType(dict(self.template)))


@dataclass(frozen=True)
class ReconciliationRequest:
    """Descriptor handed to the external role reconciler."""

    role_name: str
    password_ref: str
    database: Optional[ManagedDatabase] = None
    database_name: Optional[str] = None

    def to_resource_properties(self, service_token: str) -> dict[str, Any]:
        """Render the custom resource properties for CloudFormation."""
        properties: dict[str, Any] = {
            "ServiceToken": service_token,
            "RoleName": self.role_name,
            "PasswordArn": self.password_ref,
        }
        database_name = (
            self.database.database_name if self.database else self.database_name
        )
        if database_name:
            properties["DatabaseName"] = database_name
        return properties


@dataclass(frozen=True)
class DependencyEdge:
    """``dependent`` must not be acted upon before ``depends_on`` is durable."""

    dependent: str
    depends_on: str


@dataclass(frozen=True)
class PermissionGrant:
    """An IAM grant from a resource to a principal."""

    principal: str
    actions: tuple[str, ...]
    resource: str

    def to_policy_statement(self) -> dict[str, Any]:
        return {
            "Effect": "Allow",
            "Action": list(self.actions),
            "Resource": self.resource,
        }
