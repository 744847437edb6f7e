"""Abstract interface for service event handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ipam_reconciler.models import ServiceSnapshot


class ServiceHandler(ABC):
    """Base class for handlers managed by :class:`HandlerRegistry`."""

    @abstractmethod
    def on_service_upsert(self, snapshot: ServiceSnapshot) -> None:
        """Reconcile ``snapshot`` as the current state of the service."""

    @abstractmethod
    def on_service_delete(self, owner_hint: str) -> None:
        """Release anything held on behalf of ``owner_hint``."""
