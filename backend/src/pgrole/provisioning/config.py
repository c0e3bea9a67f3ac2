"""Environment-driven settings for role provisioning."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping
from typing import Optional

from pgrole.exceptions import ConfigurationError
from pgrole.provisioning.credentials import DEFAULT_SECRET_NAME_PREFIX
from pgrole.provisioning.models import RemovalPolicy


@dataclass(frozen=True)
class ProvisioningSettings:
    """Settings shared by every role provisioned in a deployment."""

    removal_policy: RemovalPolicy = RemovalPolicy.DESTROY
    secret_name_prefix: str = DEFAULT_SECRET_NAME_PREFIX
    region_name: Optional[str] = None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ProvisioningSettings:
    """Read settings from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ``.

    Raises:
        ConfigurationError: If ROLE_SECRET_REMOVAL_POLICY is not a known policy.
    """
    env = os.environ if environ is None else environ

    raw_policy = (env.get("ROLE_SECRET_REMOVAL_POLICY") or "destroy").strip().lower()
    try:
        removal_policy = RemovalPolicy(raw_policy)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unsupported removal policy: {raw_policy}",
            config_name="ROLE_SECRET_REMOVAL_POLICY",
        ) from exc

    prefix = env.get("ROLE_SECRET_NAME_PREFIX")
    if prefix is None:
        prefix = DEFAULT_SECRET_NAME_PREFIX

    region = env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or None

    return ProvisioningSettings(
        removal_policy=removal_policy,
        secret_name_prefix=prefix,
        region_name=region,
    )
