"""Addressing rule definitions consumed by the reconciliation engine."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Optional, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


@dataclass(frozen=True)
class AddressingRule:
    """Maps services onto a registry subnet.

    Attributes
    ----------
    cidr:
        Address range covered by the rule, e.g. ``"203.0.113.0/24"``.  It is
        also the key used to resolve the registry subnet.
    namespace:
        Only services in exactly this namespace match, when set.
    service_type:
        Only services of exactly this type match, when set.
    regex:
        Only services whose unqualified name fully matches this regular
        expression, when set.
    """

    cidr: str
    namespace: Optional[str] = None
    service_type: Optional[str] = None
    regex: Optional[str] = None

    @property
    def network(self) -> IPNetwork:
        return ipaddress.ip_network(self.cidr, strict=False)

    def describe(self) -> str:
        parts = [self.cidr]
        if self.namespace is not None:
            parts.append(f"namespace={self.namespace}")
        if self.service_type is not None:
            parts.append(f"type={self.service_type}")
        if self.regex is not None:
            parts.append(f"regex={self.regex!r}")
        return " ".join(parts)


def parse_rule(entry: dict) -> AddressingRule:
    """Build a rule from a configuration mapping, validating its CIDR."""

    if "cidr" not in entry:
        raise ValueError("subnet rule missing 'cidr'")
    cidr = str(entry["cidr"])
    try:
        ipaddress.ip_network(cidr, strict=False)
    except ValueError as exc:
        raise ValueError(f"subnet rule contains invalid CIDR {cidr!r}: {exc}") from exc

    def _optional(key: str) -> Optional[str]:
        value = entry.get(key)
        return None if value is None else str(value)

    return AddressingRule(
        cidr=cidr,
        namespace=_optional("namespace"),
        service_type=_optional("type"),
        regex=_optional("regex"),
    )
