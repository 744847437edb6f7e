"""Abstract interface to the external IPAM registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from .models import Reservation, SubnetHandle


class RegistryClient(ABC):
    """Operations the engine needs from the registry.

    Implementations raise :class:`~ipam_reconciler.errors.RegistryError`
    subclasses so callers can tell "not found", transport/auth failures and
    application errors apart.
    """

    @abstractmethod
    def lookup_subnet_by_range(self, cidr: str) -> SubnetHandle:
        """Resolve ``cidr`` to exactly one registry subnet."""

    @abstractmethod
    def find_reservation(self, address: str) -> List[Reservation]:
        """Return every reservation recorded for ``address`` (possibly none)."""

    @abstractmethod
    def create_reservation(
        self, subnet: SubnetHandle, address: str, owner: str
    ) -> Reservation:
        """Reserve ``address`` in ``subnet`` with ``owner`` as hostname."""

    @abstractmethod
    def update_reservation_owner(self, record_id: str, owner: str) -> None:
        """Rewrite the hostname field of an existing reservation."""

    @abstractmethod
    def delete_reservation(self, record_id: str) -> None:
        """Remove an existing reservation."""
