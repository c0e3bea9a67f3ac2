"""Ordering and permission edges between a credential and its reconciler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Optional

from pgrole.provisioning.models import DECRYPT_ACTIONS
from pgrole.provisioning.models import READ_SECRET_ACTIONS
from pgrole.provisioning.models import Credential
from pgrole.provisioning.models import DependencyEdge
from pgrole.provisioning.models import ExecutionIdentity
from pgrole.provisioning.models import PermissionGrant


def role_resource_id(role_name: str) -> str:
    """Graph node id of the reconciled role."""
    return f"role/{role_name}"


@dataclass(frozen=True)
class Binding:
    """Edges that let the reconciler act on a credential."""

    dependency: DependencyEdge
    read_grant: PermissionGrant
    decrypt_grant: Optional[PermissionGrant] = None

    @property
    def grants(self) -> tuple[PermissionGrant, ...]:
        if self.decrypt_grant is None:
            return (self.read_grant,)
        return (self.read_grant, self.decrypt_grant)

    def to_policy_document(self) -> dict[str, Any]:
        """Render the grants as an IAM policy for the reconciler role."""
        return {
            "Version": "2012-10-17",
            "Statement": [grant.to_policy_statement() for grant in self.grants],
        }


class DependencyBinder:
    """Builds the dependency and grants for one credential."""

    def bind(
        self,
        credential: Credential,
        role_name: str,
        identity: ExecutionIdentity,
    ) -> Binding:
        dependency = DependencyEdge(
            dependent=role_resource_id(role_name),
            depends_on=credential.secret_arn,
        )
        read_grant = PermissionGrant(
            principal=identity.role_arn,
            actions=READ_SECRET_ACTIONS,
            resource=credential.secret_arn,
        )
        decrypt_grant = None
        # Key policies are independent of secret policies, so decrypt is granted explicitly
        if credential.encryption_key is not None:
            decrypt_grant = PermissionGrant(
                principal=identity.role_arn,
                actions=DECRYPT_ACTIONS,
                resource=credential.encryption_key.key_arn,
            )
        return Binding(dependency, read_grant, decrypt_grant)
