"""Resolution of connection coordinates from a database topology."""

from __future__ import annotations

from typing import Any

from pgrole.exceptions import TopologyResolutionError
from pgrole.provisioning.models import DatabaseTopology
from pgrole.provisioning.models import Endpoint


def resolve_topology(topology: Any) -> Endpoint:
    """Return the host, port and identifier of a database topology.

    ``Cluster`` and ``SingleInstance`` answer through ``endpoint()``.
    Other objects are read by shape, cluster style first: an object with a
    ``cluster_endpoint`` uses it and its ``cluster_identifier``, otherwise
    ``instance_endpoint`` and ``instance_identifier`` are used. This covers
    CDK ``DatabaseCluster``/``DatabaseInstance`` constructs.

    Raises:
        TopologyResolutionError: If neither shape is present.
    """
    if isinstance(topology, DatabaseTopology) and callable(topology.endpoint):
        return topology.endpoint()

    cluster_endpoint = getattr(topology, "cluster_endpoint", None)
    if cluster_endpoint is not None:
        return _from_shape(topology, cluster_endpoint, "cluster_identifier")

    instance_endpoint = getattr(topology, "instance_endpoint", None)
    if instance_endpoint is not None:
        return _from_shape(topology, instance_endpoint, "instance_identifier")

    raise TopologyResolutionError(topology)


def _from_shape(topology: Any, endpoint: Any, identifier_attr: str) -> Endpoint:
    hostname = getattr(endpoint, "hostname", None)
    port = getattr(endpoint, "port", None)
    identifier = getattr(topology, identifier_attr, None)
    if hostname is None or port is None or identifier is None:
        raise TopologyResolutionError(topology)
    return Endpoint(host=hostname, port=port, identifier=identifier)
