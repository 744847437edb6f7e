"""Event primitives consumed by the handler registry."""

from __future__ import annotations

from dataclasses import dataclass

from ipam_reconciler.models import ServiceSnapshot


@dataclass(frozen=True)
class ServiceUpsert:
    """A service was added, changed or re-delivered by a resync.

    Watchers publish the full snapshot each time so handlers can reconcile
    without remembering earlier events.
    """

    snapshot: ServiceSnapshot


@dataclass(frozen=True)
class ServiceDelete:
    """A service disappeared.

    ``owner_hint`` is the owner identifier of the removed service when the
    watcher could compute it, otherwise the bare ``namespace/name`` key.
    """

    owner_hint: str
