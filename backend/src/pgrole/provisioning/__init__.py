"""Composition of database roles, their credentials and reconciler grants."""

from pgrole.provisioning.binding import Binding, DependencyBinder
from pgrole.provisioning.config import ProvisioningSettings, load_settings
from pgrole.provisioning.credentials import CredentialProvisioner, generate_password
from pgrole.provisioning.models import (
    Cluster,
    Credential,
    DependencyEdge,
    EncryptionKey,
    Endpoint,
    ExecutionIdentity,
    ManagedDatabase,
    OrchestratorState,
    PermissionGrant,
    Provider,
    ReconciliationRequest,
    RemovalPolicy,
    RoleSpec,
    SingleInstance,
)
from pgrole.provisioning.orchestrator import (
    ProvisionedRole,
    RoleOrchestrator,
    validate_role_spec,
)
from pgrole.provisioning.topology import resolve_topology

__all__ = [
    "Binding",
    "Cluster",
    "Credential",
    "CredentialProvisioner",
    "DependencyBinder",
    "DependencyEdge",
    "EncryptionKey",
    "Endpoint",
    "ExecutionIdentity",
    "ManagedDatabase",
    "OrchestratorState",
    "PermissionGrant",
    "ProvisionedRole",
    "Provider",
    "ProvisioningSettings",
    "ReconciliationRequest",
    "RemovalPolicy",
    "RoleOrchestrator",
    "RoleSpec",
    "SingleInstance",
    "generate_password",
    "load_settings",
    "resolve_topology",
    "validate_role_spec",
]
