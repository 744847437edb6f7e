"""Offline computation of the reservations a set of services implies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .config import AddressingRule
from .extractor import extract_addresses
from .matcher import PolicyMatcher
from .models import ServiceSnapshot


@dataclass(frozen=True)
class PlannedReservation:
    address: str
    owner: str
    cidr: str
    service: str


def plan_reservations(
    snapshots: Iterable[ServiceSnapshot], rules: Sequence[AddressingRule]
) -> List[PlannedReservation]:
    """Return the reservations the engine would ensure, without a registry."""

    matcher = PolicyMatcher(rules)
    planned: List[PlannedReservation] = []
    for snapshot in snapshots:
        for rule in matcher.match(snapshot):
            for address in extract_addresses(snapshot.address_candidates, rule.network):
                planned.append(
                    PlannedReservation(
                        address=address,
                        owner=snapshot.owner,
                        cidr=rule.cidr,
                        service=snapshot.key,
                    )
                )
    return planned
