"""Adapter between the reconciliation engine and the registry contract."""

from __future__ import annotations

import logging

from ipam_reconciler.engine import ReconciliationEngine
from ipam_reconciler.models import ServiceSnapshot

from .base import ServiceHandler

LOG = logging.getLogger(__name__)


class EngineHandlerAdapter(ServiceHandler):
    """Wrap :class:`~ipam_reconciler.engine.ReconciliationEngine` for registry use."""

    def __init__(self, engine: ReconciliationEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    def on_service_upsert(self, snapshot: ServiceSnapshot) -> None:
        report = self._engine.on_service_upsert(snapshot)
        LOG.debug(
            "Reconciled %s: %s",
            snapshot.key,
            [(r.address, r.outcome.value) for r in report.results],
        )

    def on_service_delete(self, owner_hint: str) -> None:
        report = self._engine.on_service_delete(owner_hint)
        if report.failed:
            LOG.warning(
                "Reservations for %s left in registry: %s",
                owner_hint,
                ", ".join(report.failed),
            )


def build_engine_adapter(engine: ReconciliationEngine) -> EngineHandlerAdapter:
    """Helper mirroring the builder pattern used by the runtime."""

    return EngineHandlerAdapter(engine)
