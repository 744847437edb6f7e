"""Bring a single registry reservation in line with the desired owner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .cache import OwnershipCache
from .config import AddressingRule
from .errors import ConsistencyError, RegistryError
from .models import SubnetHandle
from .registry_client import RegistryClient

LOG = logging.getLogger(__name__)


class SyncOutcome(Enum):
    CREATED = "created"
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncResult:
    address: str
    owner: str
    outcome: SyncOutcome
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (
            SyncOutcome.CREATED,
            SyncOutcome.UNCHANGED,
            SyncOutcome.UPDATED,
        )


class ReservationSynchronizer:
    """Ensure the registry holds exactly one reservation owned by ``owner``.

    Every call re-reads the registry; the cache is only written after the
    registry confirms the desired state.  Failures are logged and reported in
    the returned :class:`SyncResult`, never retried.
    """

    def __init__(self, client: RegistryClient, cache: OwnershipCache) -> None:
        self._client = client
        self._cache = cache

    def synchronize(
        self,
        address: str,
        subnet: SubnetHandle,
        owner: str,
        rule: Optional[AddressingRule] = None,
    ) -> SyncResult:
        rule_desc = rule.cidr if rule is not None else subnet.cidr

        try:
            existing = self._client.find_reservation(address)
        except RegistryError as exc:
            LOG.error(
                "Error looking up IP address %s in registry (rule %s, owner %s): %s",
                address,
                rule_desc,
                owner,
                exc,
            )
            return SyncResult(address, owner, SyncOutcome.FAILED, exc)

        if not existing:
            LOG.info(
                "IP address %s not found in registry, adding to subnet %s with hostname %s",
                address,
                subnet.subnet_id,
                owner,
            )
            try:
                self._client.create_reservation(subnet, address, owner)
            except RegistryError as exc:
                LOG.error(
                    "Error creating IP address %s in registry (rule %s, owner %s): %s",
                    address,
                    rule_desc,
                    owner,
                    exc,
                )
                return SyncResult(address, owner, SyncOutcome.FAILED, exc)
            self._cache.record_owner(address, owner)
            return SyncResult(address, owner, SyncOutcome.CREATED)

        if len(existing) > 1:
            conflict = ConsistencyError(address, len(existing))
            LOG.error(
                "Registry consistency error, operator attention required "
                "(rule %s, owner %s): %s; records %s",
                rule_desc,
                owner,
                conflict,
                ", ".join(r.record_id for r in existing),
            )
            return SyncResult(address, owner, SyncOutcome.CONFLICT, conflict)

        reservation = existing[0]
        if reservation.hostname == owner:
            LOG.debug("IP address %s already allocated to %s", address, owner)
            self._cache.record_owner(address, owner)
            return SyncResult(address, owner, SyncOutcome.UNCHANGED)

        LOG.info(
            "IP address %s (record %s) has hostname %r, changing to %s",
            address,
            reservation.record_id,
            reservation.hostname,
            owner,
        )
        try:
            self._client.update_reservation_owner(reservation.record_id, owner)
        except RegistryError as exc:
            LOG.error(
                "Error patching IP address %s in registry (rule %s, owner %s): %s",
                address,
                rule_desc,
                owner,
                exc,
            )
            return SyncResult(address, owner, SyncOutcome.FAILED, exc)
        self._cache.record_owner(address, owner)
        return SyncResult(address, owner, SyncOutcome.UPDATED)
