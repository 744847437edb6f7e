"""Reconciliation engine keeping an IPAM registry in sync with services.

The engine receives service snapshots and removal notices from the event
layer and makes sure the registry records which service owns each address:

* :class:`~ipam_reconciler.matcher.PolicyMatcher` picks the addressing rules
  that apply to a service;
* :func:`~ipam_reconciler.extractor.extract_addresses` selects the service
  addresses inside a rule's range;
* :class:`~ipam_reconciler.synchronizer.ReservationSynchronizer` creates or
  corrects the registry reservation for one address;
* :class:`~ipam_reconciler.deletion.DeletionReconciler` removes reservations
  when their owner goes away.

State shared between the steps lives in an
:class:`~ipam_reconciler.cache.OwnershipCache` owned by the
:class:`~ipam_reconciler.engine.ReconciliationEngine`.  The package has no
network code of its own; the registry is reached through
:class:`~ipam_reconciler.registry_client.RegistryClient`.
"""

from .config import AddressingRule  # noqa: F401
from .engine import ReconciliationEngine  # noqa: F401
from .models import ServiceSnapshot, owner_identifier  # noqa: F401

__all__ = [
    "AddressingRule",
    "ReconciliationEngine",
    "ServiceSnapshot",
    "owner_identifier",
]
