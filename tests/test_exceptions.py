"""Tests for custom exception classes."""

from __future__ import annotations

from pgrole.exceptions import (
    AppError,
    ConfigurationError,
    ReconciliationError,
    SecretStoreError,
    TopologyResolutionError,
)


class TestAppError:
    """Tests for base AppError class."""

    def test_to_dict_without_detail(self) -> None:
        error = AppError('Error message')
        assert error.message == 'Error message'
        assert error.to_dict() == {'error': 'Error message'}

    def test_to_dict_with_detail(self) -> None:
        error = AppError('Error', detail='Additional info')
        result = error.to_dict()
        assert result['error'] == 'Error'
        assert result['detail'] == 'Additional info'


class TestConfigurationError:
    """Tests for ConfigurationError class."""

    def test_includes_field_in_detail(self) -> None:
        error = ConfigurationError('Specify either database or databaseName', 'database')
        assert error.config_name == 'database'
        assert 'database' in error.detail

    def test_without_field(self) -> None:
        error = ConfigurationError('Bad settings')
        assert error.detail is None
        assert isinstance(error, AppError)


class TestTopologyResolutionError:
    """Tests for TopologyResolutionError class."""

    def test_names_topology_type(self) -> None:
        topology = object()
        error = TopologyResolutionError(topology)
        assert error.topology is topology
        assert 'object' in error.detail


class TestReconciliationError:
    """Tests for ReconciliationError class."""

    def test_includes_role_in_detail(self) -> None:
        error = ReconciliationError('Role name too long', 'x' * 70)
        assert error.role_name == 'x' * 70
        assert error.detail.startswith('Role: ')

    def test_secret_store_error_is_app_error(self) -> None:
        error = SecretStoreError('Failed', detail='AccessDeniedException')
        assert error.to_dict()['detail'] == 'AccessDeniedException'
