"""Data structures exchanged between the engine components.

These dataclasses describe services as seen by the watchers and
reservations as seen by the registry.  They carry no behaviour beyond small
helpers so that every component can be exercised in tests with plain values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

DEFAULT_SHARED_IP_ANNOTATION = "metallb.universe.tf/allow-shared-ip"


def owner_identifier(
    namespace: str, name: str, shared_ip_name: Optional[str] = None
) -> str:
    """Return the string written into the registry hostname field.

    Services carrying the shared-IP annotation are attributed to
    ``namespace/<annotation value>`` so every member of the sharing group
    resolves to the same owner.
    """

    if shared_ip_name:
        return f"{namespace}/{shared_ip_name}"
    return f"{namespace}/{name}"


@dataclass(frozen=True)
class ServiceSnapshot:
    """Point-in-time view of a cluster service.

    Attributes
    ----------
    namespace:
        Namespace the service lives in.
    name:
        Unqualified service name.
    service_type:
        Kubernetes service type (``ClusterIP``, ``LoadBalancer``, ...).
    shared_ip_name:
        Value of the shared-IP annotation, if present.
    address_candidates:
        Load-balancer, cluster-internal and externally advertised addresses,
        in that order.  Entries are raw strings and may be empty or invalid.
    """

    namespace: str
    name: str
    service_type: Optional[str] = None
    shared_ip_name: Optional[str] = None
    address_candidates: Sequence[str] = ()

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def owner(self) -> str:
        return owner_identifier(self.namespace, self.name, self.shared_ip_name)


@dataclass(frozen=True)
class SubnetHandle:
    """Registry subnet resolved for a configured CIDR."""

    subnet_id: str
    cidr: str


@dataclass(frozen=True)
class Reservation:
    """Registry-side address record.

    Only ``record_id`` and ``hostname`` drive decisions; everything else the
    registry returns is kept in ``raw`` untouched.
    """

    address: str
    record_id: str
    subnet_id: Optional[str] = None
    hostname: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)
