"""File-based service watcher."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Dict

from ipam_reconciler.models import DEFAULT_SHARED_IP_ANNOTATION, ServiceSnapshot
from service_events.events import ServiceDelete, ServiceUpsert

from .utils import service_from_mapping

LOG = logging.getLogger(__name__)


def _extract_state(payload: dict, shared_ip_annotation: str) -> Dict[str, ServiceSnapshot]:
    items = payload.get("services", payload.get("items"))
    if items is None:
        raise ValueError("services file missing 'services' or 'items' key")

    state: Dict[str, ServiceSnapshot] = {}
    for item in items:
        snapshot = service_from_mapping(item, shared_ip_annotation)
        state[snapshot.key] = snapshot
    return state


class FileServiceWatcher(Thread):
    """Poll a JSON service list and publish service events.

    The file holds either ``{"services": [...]}`` or the
    ``kubectl get services -A -o json`` list with its ``items`` key.  An upsert
    is published whenever a service's snapshot changes and a delete when a
    service disappears from the file.
    """

    def __init__(
        self,
        sink,
        path: Path,
        interval: float,
        stop_event: Event,
        shared_ip_annotation: str = DEFAULT_SHARED_IP_ANNOTATION,
    ) -> None:
        super().__init__(daemon=True)
        self._sink = sink
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._shared_ip_annotation = shared_ip_annotation
        self._state: Dict[str, ServiceSnapshot] = {}

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> None:
        if not self._path.exists():
            LOG.debug("services file %s does not exist yet", self._path)
            return

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse services file %s: %s", self._path, exc)
            return

        try:
            desired = _extract_state(payload, self._shared_ip_annotation)
        except (ValueError, AttributeError) as exc:
            LOG.warning("invalid services file %s: %s", self._path, exc)
            return

        for key, snapshot in desired.items():
            if self._state.get(key) != snapshot:
                LOG.debug("service %s updated: %s", key, snapshot.address_candidates)
                self._sink.handle(ServiceUpsert(snapshot))

        for key in set(self._state) - set(desired):
            LOG.debug("service %s removed", key)
            self._sink.handle(ServiceDelete(self._state[key].owner))

        self._state = desired
