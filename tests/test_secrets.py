"""Tests for Secrets Manager helpers."""

from __future__ import annotations

import base64
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from pgrole.exceptions import SecretStoreError
from pgrole.services.secrets import (
    SecretDefinition,
    SecretsManagerSecretStore,
    get_secret_json,
)

SECRET_ARN = 'arn:aws:secretsmanager:us-east-1:123456789012:secret:pgrole/svc-AbCdEf'


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


def _definition(kms_key_id=None) -> SecretDefinition:
    return SecretDefinition(
        name='pgrole/svc',
        description='Generated secret for postgres role svc',
        payload={'username': 'svc', 'password': 'p' * 30},
        kms_key_id=kms_key_id,
    )


class TestGetSecretJson:
    """Tests for get_secret_json."""

    def test_parses_and_caches(self, mocker) -> None:
        client = MagicMock()
        client.get_secret_value.return_value = {
            'SecretString': json.dumps({'password': 'abc'})
        }
        mocker.patch(
            'pgrole.services.secrets.get_secretsmanager_client', return_value=client
        )

        assert get_secret_json(SECRET_ARN) == {'password': 'abc'}
        assert get_secret_json(SECRET_ARN) == {'password': 'abc'}
        assert client.get_secret_value.call_count == 1

    def test_refresh_bypasses_cache(self, mocker) -> None:
        client = MagicMock()
        client.get_secret_value.side_effect = [
            {'SecretString': json.dumps({'password': 'old'})},
            {'SecretString': json.dumps({'password': 'new'})},
        ]
        mocker.patch(
            'pgrole.services.secrets.get_secretsmanager_client', return_value=client
        )

        get_secret_json(SECRET_ARN)
        assert get_secret_json(SECRET_ARN, refresh=True) == {'password': 'new'}

    def test_decodes_binary(self, mocker) -> None:
        client = MagicMock()
        client.get_secret_value.return_value = {
            'SecretBinary': base64.b64encode(b'{"password": "bin"}')
        }
        mocker.patch(
            'pgrole.services.secrets.get_secretsmanager_client', return_value=client
        )
        assert get_secret_json(SECRET_ARN)['password'] == 'bin'

    def test_empty_secret_raises(self, mocker) -> None:
        client = MagicMock()
        client.get_secret_value.return_value = {}
        mocker.patch(
            'pgrole.services.secrets.get_secretsmanager_client', return_value=client
        )
        with pytest.raises(RuntimeError):
            get_secret_json(SECRET_ARN)


class TestSecretsManagerSecretStore:
    """Tests for SecretsManagerSecretStore."""

    def test_create_secret(self) -> None:
        client = MagicMock()
        client.create_secret.return_value = {'ARN': SECRET_ARN}
        store = SecretsManagerSecretStore(client=client)

        assert store.create_secret(_definition()) == SECRET_ARN
        kwargs = client.create_secret.call_args.kwargs
        assert kwargs['Name'] == 'pgrole/svc'
        assert json.loads(kwargs['SecretString'])['username'] == 'svc'
        assert 'KmsKeyId' not in kwargs

    def test_create_secret_with_key(self) -> None:
        client = MagicMock()
        client.create_secret.return_value = {'ARN': SECRET_ARN}
        store = SecretsManagerSecretStore(client=client)

        store.create_secret(_definition(kms_key_id='arn:aws:kms:us-east-1:1:key/k'))
        assert client.create_secret.call_args.kwargs['KmsKeyId'] == (
            'arn:aws:kms:us-east-1:1:key/k'
        )

    def test_create_failure_raises_store_error(self) -> None:
        client = MagicMock()
        client.create_secret.side_effect = _client_error(
            'ResourceExistsException', 'CreateSecret'
        )
        store = SecretsManagerSecretStore(client=client)

        with pytest.raises(SecretStoreError) as exc_info:
            store.create_secret(_definition())
        assert exc_info.value.detail == 'ResourceExistsException'

    def test_delete_secret_without_recovery(self) -> None:
        client = MagicMock()
        SecretsManagerSecretStore(client=client).delete_secret(SECRET_ARN)
        client.delete_secret.assert_called_once_with(
            SecretId=SECRET_ARN,
            ForceDeleteWithoutRecovery=True,
        )

    def test_delete_missing_secret_is_ignored(self) -> None:
        client = MagicMock()
        client.delete_secret.side_effect = _client_error(
            'ResourceNotFoundException', 'DeleteSecret'
        )
        SecretsManagerSecretStore(client=client).delete_secret(SECRET_ARN)

    def test_delete_failure_raises_store_error(self) -> None:
        client = MagicMock()
        client.delete_secret.side_effect = _client_error(
            'AccessDeniedException', 'DeleteSecret'
        )
        with pytest.raises(SecretStoreError):
            SecretsManagerSecretStore(client=client).delete_secret(SECRET_ARN)

    def test_definition_repr_hides_payload(self) -> None:
        assert 'password' not in repr(_definition())
