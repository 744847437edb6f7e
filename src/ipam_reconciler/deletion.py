"""Remove registry reservations owned by a deleted service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .cache import OwnershipCache
from .errors import ConsistencyError, RegistryError, RegistryNotFoundError
from .registry_client import RegistryClient

LOG = logging.getLogger(__name__)


class DeleteOutcome(Enum):
    DELETED = "deleted"
    ABSENT = "absent"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class DeleteResult:
    address: str
    outcome: DeleteOutcome
    record_id: Optional[str] = None
    error: Optional[Exception] = None


@dataclass
class DeletionReport:
    owner: str
    results: List[DeleteResult] = field(default_factory=list)

    @property
    def deleted(self) -> List[str]:
        return [r.address for r in self.results if r.outcome is DeleteOutcome.DELETED]

    @property
    def failed(self) -> List[str]:
        return [
            r.address
            for r in self.results
            if r.outcome in (DeleteOutcome.FAILED, DeleteOutcome.CONFLICT)
        ]


class DeletionReconciler:
    """Delete every cached reservation belonging to an owner.

    Each address is re-checked against the registry before deleting.  A
    failed delete leaves the cache entry in place; nothing retries it.
    """

    def __init__(self, client: RegistryClient, cache: OwnershipCache) -> None:
        self._client = client
        self._cache = cache

    def reconcile_removal(self, owner: str) -> DeletionReport:
        report = DeletionReport(owner=owner)
        addresses = self._cache.addresses_owned_by(owner)
        if not addresses:
            LOG.debug("No cached IP addresses owned by %s", owner)
            return report

        for address in addresses:
            LOG.info("Found existing IP cache for %s: %s", owner, address)
            report.results.append(self._remove(address, owner))
        return report

    def _remove(self, address: str, owner: str) -> DeleteResult:
        try:
            existing = self._client.find_reservation(address)
        except RegistryError as exc:
            LOG.error("Error looking up IP address %s for %s: %s", address, owner, exc)
            return DeleteResult(address, DeleteOutcome.FAILED, error=exc)

        if not existing:
            LOG.debug("IP address %s no longer present in registry", address)
            self._cache.forget_address(address)
            return DeleteResult(address, DeleteOutcome.ABSENT)

        if len(existing) > 1:
            conflict = ConsistencyError(address, len(existing))
            LOG.error(
                "Registry consistency error while removing %s, operator attention required: %s",
                owner,
                conflict,
            )
            return DeleteResult(address, DeleteOutcome.CONFLICT, error=conflict)

        record_id = existing[0].record_id
        LOG.info("Registry contains mapping for %s: %s, deleting", address, record_id)
        try:
            self._client.delete_reservation(record_id)
        except RegistryNotFoundError:
            LOG.info("Record %s for %s was already removed from registry", record_id, address)
            self._cache.forget_address(address)
            return DeleteResult(address, DeleteOutcome.ABSENT, record_id)
        except RegistryError as exc:
            LOG.error("Error deleting IP address %s (record %s): %s", address, record_id, exc)
            return DeleteResult(address, DeleteOutcome.FAILED, record_id, exc)

        self._cache.forget_address(address)
        return DeleteResult(address, DeleteOutcome.DELETED, record_id)
