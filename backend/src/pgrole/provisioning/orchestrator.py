"""Top-level composition of a database role.

A provisioning pass runs validating, resolving, provisioning, binding and
ends delegated to the reconciler. Validation failures stop the pass before
the secret store is touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Optional

from pgrole.exceptions import ConfigurationError
from pgrole.provisioning.binding import Binding
from pgrole.provisioning.binding import DependencyBinder
from pgrole.provisioning.config import ProvisioningSettings
from pgrole.provisioning.config import load_settings
from pgrole.provisioning.credentials import CredentialProvisioner
from pgrole.provisioning.models import Credential
from pgrole.provisioning.models import OrchestratorState
from pgrole.provisioning.models import Provider
from pgrole.provisioning.models import ReconciliationRequest
from pgrole.provisioning.models import RoleSpec
from pgrole.provisioning.topology import resolve_topology
from pgrole.services.secrets import SecretsManagerSecretStore
from pgrole.utils.logging import get_logger

logger = get_logger(__name__)


def validate_role_spec(spec: RoleSpec) -> None:
    """Check a role spec before anything is created.

    Raises:
        ConfigurationError: If the role name is empty or if not exactly one
            of ``database`` and ``database_name`` is set.
    """
    if not isinstance(spec.role_name, str) or not spec.role_name.strip():
        raise ConfigurationError("Role name must be a non-empty string", "role_name")
    has_ref = spec.database is not None
    has_name = bool(spec.database_name)
    if has_ref == has_name:
        raise ConfigurationError(
            "Specify either database or databaseName",
            "database",
        )


@dataclass(frozen=True)
class ProvisionedRole:
    """Outputs of a completed provisioning pass."""

    role_name: str
    credential: Credential
    request: ReconciliationRequest
    binding: Binding
    service_token: str
    transitions: tuple[OrchestratorState, ...]

    @property
    def secret_arn(self) -> str:
        return self.credential.secret_arn

    def resource_properties(self) -> dict[str, Any]:
        """Custom resource properties for the reconciler invocation."""
        return self.request.to_resource_properties(self.service_token)


class RoleOrchestrator:
    """Provisions roles served by one reconciler provider."""

    def __init__(
        self,
        provider: Provider,
        provisioner: CredentialProvisioner,
        binder: Optional[DependencyBinder] = None,
    ):
        self.provider = provider
        self.provisioner = provisioner
        self.binder = binder or DependencyBinder()

    @classmethod
    def from_settings(
        cls,
        provider: Provider,
        settings: Optional[ProvisioningSettings] = None,
    ) -> "RoleOrchestrator":
        """Build an orchestrator backed by AWS Secrets Manager."""
        settings = settings or load_settings()
        provisioner = CredentialProvisioner(
            SecretsManagerSecretStore(region_name=settings.region_name),
            removal_policy=settings.removal_policy,
            name_prefix=settings.secret_name_prefix,
        )
        return cls(provider, provisioner)

    def provision(self, spec: RoleSpec) -> ProvisionedRole:
        """Run a full provisioning pass for ``spec``.

        Raises:
            ConfigurationError: If the spec is invalid; nothing is created.
            TopologyResolutionError: If the provider topology has no endpoint.
        """
        transitions: list[OrchestratorState] = []

        self._advance(transitions, OrchestratorState.VALIDATING, spec.role_name)
        validate_role_spec(spec)

        self._advance(transitions, OrchestratorState.RESOLVING, spec.role_name)
        endpoint = resolve_topology(self.provider.topology)

        self._advance(transitions, OrchestratorState.PROVISIONING, spec.role_name)
        credential = self.provisioner.provision(
            endpoint,
            spec.role_name,
            spec.target_database_name,
            encryption_key=spec.encryption_key,
            secret_name=spec.secret_name,
        )

        self._advance(transitions, OrchestratorState.BINDING, spec.role_name)
        binding = self.binder.bind(credential, spec.role_name, self.provider.identity)
        request = ReconciliationRequest(
            role_name=spec.role_name,
            password_ref=credential.secret_arn,
            database=spec.database,
            database_name=spec.database_name,
        )

        self._advance(transitions, OrchestratorState.DELEGATED, spec.role_name)
        return ProvisionedRole(
            role_name=spec.role_name,
            credential=credential,
            request=request,
            binding=binding,
            service_token=self.provider.service_token,
            transitions=tuple(transitions),
        )

    def deprovision(self, provisioned: ProvisionedRole) -> bool:
        """Release the credential of a removed role.

        The role itself is dropped by the reconciler on its Delete event.

        Returns:
            True if the secret was deleted, False if it was retained.
        """
        logger.info(
            "Deprovisioning role credential",
            extra={"role_name": provisioned.role_name},
        )
        return self.provisioner.release(provisioned.credential)

    @staticmethod
    def _advance(
        transitions: list[OrchestratorState],
        state: OrchestratorState,
        role_name: str,
    ) -> None:
        transitions.append(state)
        logger.debug(
            f"Role provisioning entered {state.value}",
            extra={"role_name": role_name, "state": state.value},
        )
