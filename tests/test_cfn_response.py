"""Tests for CloudFormation custom resource responses."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from pgrole.utils.cfn_response import (
    FAILED,
    SUCCESS,
    build_response_body,
    failure_reason,
    send_cfn_response,
)

CONTEXT = SimpleNamespace(log_stream_name='2026/10/19/[$LATEST]abc')


def test_body_echoes_event_identifiers(cfn_event) -> None:
    body = build_response_body(cfn_event, CONTEXT, SUCCESS, {'RoleName': 'app_user'}, 'app_user')
    assert body['Status'] == 'SUCCESS'
    assert body['PhysicalResourceId'] == 'app_user'
    assert body['RequestId'] == 'req-1'
    assert body['LogicalResourceId'] == 'PostgresRole'
    assert body['Data'] == {'RoleName': 'app_user'}
    assert body['NoEcho'] is False


def test_body_defaults_to_log_stream(cfn_event) -> None:
    body = build_response_body(cfn_event, CONTEXT, FAILED)
    assert body['PhysicalResourceId'] == CONTEXT.log_stream_name
    assert body['Reason'] == f'See CloudWatch Logs: {CONTEXT.log_stream_name}'


def test_reason_is_truncated(cfn_event) -> None:
    body = build_response_body(cfn_event, None, FAILED, reason='x' * 500)
    assert len(body['Reason']) == 256


def test_rejects_unknown_status(cfn_event) -> None:
    with pytest.raises(ValueError):
        build_response_body(cfn_event, None, 'DONE')


def test_failure_reason_includes_type() -> None:
    assert failure_reason(RuntimeError('boom')) == 'RuntimeError: boom'
    assert len(failure_reason(RuntimeError('y' * 400))) == len('RuntimeError: ') + 200


@pytest.mark.parametrize(
    'url',
    [
        'http://bucket.s3.amazonaws.com/resp',
        'https://example.com/resp',
        'file:///etc/passwd',
        '',
    ],
)
def test_rejects_untrusted_response_urls(cfn_event, url) -> None:
    cfn_event['ResponseURL'] = url
    with pytest.raises(ValueError):
        send_cfn_response(cfn_event, CONTEXT, SUCCESS)


def test_puts_body_to_response_url(mocker, cfn_event) -> None:
    response = MagicMock(status=200)
    urlopen = mocker.patch('pgrole.utils.cfn_response.urllib.request.urlopen')
    urlopen.return_value.__enter__.return_value = response

    send_cfn_response(cfn_event, CONTEXT, SUCCESS, {'RoleName': 'app_user'}, 'app_user')

    request = urlopen.call_args.args[0]
    assert request.get_method() == 'PUT'
    assert request.full_url == cfn_event['ResponseURL']
    assert json.loads(request.data)['PhysicalResourceId'] == 'app_user'
