"""Reconciliation engine.

This module wires the policy matcher, address extractor, ownership cache,
reservation synchronizer and deletion reconciler into the two handlers the
event layer invokes: one for added/updated services and one for removed
services.  The engine assumes a single worker delivers events one at a time,
so none of its state is locked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .cache import OwnershipCache
from .config import AddressingRule
from .deletion import DeletionReconciler, DeletionReport
from .errors import ConfigurationError, RegistryError
from .extractor import extract_addresses
from .matcher import PolicyMatcher
from .models import ServiceSnapshot
from .registry_client import RegistryClient
from .synchronizer import ReservationSynchronizer, SyncResult

LOG = logging.getLogger(__name__)


@dataclass
class RuleReport:
    rule: AddressingRule
    addresses: List[str] = field(default_factory=list)
    results: List[SyncResult] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass
class UpsertReport:
    """Summary of one upsert event, mainly for tests and debug logging."""

    owner: str
    rules: List[RuleReport] = field(default_factory=list)

    @property
    def results(self) -> List[SyncResult]:
        return [result for rule in self.rules for result in rule.results]


class ReconciliationEngine:
    """Keep registry reservations in line with service lifecycle events."""

    def __init__(
        self,
        client: RegistryClient,
        rules: Sequence[AddressingRule],
        cache: Optional[OwnershipCache] = None,
    ) -> None:
        self._client = client
        self._rules = list(rules)
        self._cache = cache if cache is not None else OwnershipCache()
        self._matcher = PolicyMatcher(self._rules)
        self._synchronizer = ReservationSynchronizer(client, self._cache)
        self._deletion = DeletionReconciler(client, self._cache)

    @property
    def cache(self) -> OwnershipCache:
        return self._cache

    @property
    def rules(self) -> Sequence[AddressingRule]:
        return list(self._rules)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def on_service_upsert(self, snapshot: ServiceSnapshot) -> UpsertReport:
        owner = snapshot.owner
        LOG.info("Service added: %s (owner %s)", snapshot.key, owner)
        report = UpsertReport(owner=owner)

        for rule in self._matcher.match(snapshot):
            report.rules.append(self._apply_rule(snapshot, rule, owner))
        return report

    def on_service_delete(self, owner_hint: str) -> DeletionReport:
        LOG.info("Service deleted: %s", owner_hint)
        return self._deletion.reconcile_removal(owner_hint)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _apply_rule(
        self, snapshot: ServiceSnapshot, rule: AddressingRule, owner: str
    ) -> RuleReport:
        report = RuleReport(rule=rule)
        report.addresses = extract_addresses(snapshot.address_candidates, rule.network)
        if not report.addresses:
            LOG.debug("Service %s has no addresses in %s", snapshot.key, rule.cidr)
            return report

        try:
            subnet = self._cache.resolve_subnet(self._client, rule.cidr)
        except ConfigurationError as exc:
            LOG.error("Subnet matching %s not found in registry: %s", rule.cidr, exc)
            report.error = exc
            return report
        except RegistryError as exc:
            LOG.error("Error resolving subnet %s in registry: %s", rule.cidr, exc)
            report.error = exc
            return report

        for address in report.addresses:
            report.results.append(
                self._synchronizer.synchronize(address, subnet, owner, rule)
            )
        return report
