"""Pytest configuration and fixtures for role provisioning tests.

This module provides shared fixtures for topologies, providers, an
in-memory secret store and the role reconciler Lambda module.
"""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType

import pytest

# Add backend source to path for imports
BACKEND_DIR = Path(__file__).resolve().parents[1] / 'backend'
sys.path.insert(0, str(BACKEND_DIR / 'src'))

from pgrole.provisioning import (  # noqa: E402
    Cluster,
    CredentialProvisioner,
    EncryptionKey,
    ExecutionIdentity,
    Provider,
    RoleOrchestrator,
    SingleInstance,
)
from pgrole.services.secrets import SecretDefinition  # noqa: E402

SECRET_ARN_PREFIX = 'arn:aws:secretsmanager:us-east-1:123456789012:secret:'
KEY_ARN = 'arn:aws:kms:us-east-1:123456789012:key/1234abcd-12ab-34cd-56ef-1234567890ab'
HANDLER_ROLE_ARN = 'arn:aws:iam::123456789012:role/pgrole-reconciler'
SERVICE_TOKEN = 'arn:aws:lambda:us-east-1:123456789012:function:pgrole-reconciler'


class FakeSecretStore:
    """SecretStore that keeps definitions in memory."""

    def __init__(self) -> None:
        self.created: list[SecretDefinition] = []
        self.deleted: list[str] = []

    def create_secret(self, definition: SecretDefinition) -> str:
        self.created.append(definition)
        return f'{SECRET_ARN_PREFIX}{definition.name}-AbCdEf'

    def delete_secret(self, secret_arn: str) -> None:
        self.deleted.append(secret_arn)


# --- Topology Fixtures ---


@pytest.fixture
def cluster_topology() -> Cluster:
    return Cluster(host='db.cluster', port=5432, cluster_identifier='cl-1')


@pytest.fixture
def instance_topology() -> SingleInstance:
    return SingleInstance(host='db.instance', port=5433, instance_identifier='db-1')


# --- Provisioning Fixtures ---


@pytest.fixture
def reconciler_identity() -> ExecutionIdentity:
    return ExecutionIdentity(role_arn=HANDLER_ROLE_ARN)


@pytest.fixture
def encryption_key() -> EncryptionKey:
    return EncryptionKey(key_arn=KEY_ARN)


@pytest.fixture
def provider(cluster_topology, reconciler_identity) -> Provider:
    return Provider(
        topology=cluster_topology,
        identity=reconciler_identity,
        service_token=SERVICE_TOKEN,
    )


@pytest.fixture
def secret_store() -> FakeSecretStore:
    return FakeSecretStore()


@pytest.fixture
def provisioner(secret_store) -> CredentialProvisioner:
    return CredentialProvisioner(secret_store)


@pytest.fixture
def orchestrator(provider, provisioner) -> RoleOrchestrator:
    return RoleOrchestrator(provider, provisioner)


# --- Lambda Fixtures ---


@pytest.fixture
def reconciler_handler() -> ModuleType:
    """Load the role reconciler Lambda handler module from its bundle path."""
    path = BACKEND_DIR / 'lambda' / 'role_reconciler' / 'handler.py'
    spec = importlib.util.spec_from_file_location('role_reconciler_handler', path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def cfn_event() -> dict:
    """Base CloudFormation custom resource event for a role."""
    return {
        'RequestType': 'Create',
        'ResponseURL': 'https://cloudformation-custom-resource-response-useast1.s3.amazonaws.com/resp',
        'StackId': 'arn:aws:cloudformation:us-east-1:123456789012:stack/app/guid',
        'RequestId': 'req-1',
        'LogicalResourceId': 'PostgresRole',
        'ResourceType': 'Custom::PostgresRole',
        'ResourceProperties': {
            'ServiceToken': SERVICE_TOKEN,
            'RoleName': 'app_user',
            'PasswordArn': f'{SECRET_ARN_PREFIX}pgrole/app_user-AbCdEf',
            'DatabaseName': 'appdb',
        },
    }


@pytest.fixture(autouse=True)
def _clear_caches():
    from pgrole.services.aws_clients import clear_client_cache
    from pgrole.services.secrets import clear_secret_cache

    yield
    clear_secret_cache()
    clear_client_cache()
