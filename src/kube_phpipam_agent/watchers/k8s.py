"""Kubernetes API watcher publishing service events."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Any, Callable, Dict, Optional, Tuple

from kubernetes import client, config, watch
from kubernetes.client.rest import ApiException

from ipam_reconciler.models import DEFAULT_SHARED_IP_ANNOTATION, ServiceSnapshot
from service_events.events import ServiceDelete, ServiceUpsert

from .utils import service_from_k8s

LOG = logging.getLogger(__name__)


def load_kube_config(kubeconfig: Optional[str] = None) -> None:
    """Use the in-cluster service account, falling back to a kubeconfig."""

    try:
        config.load_incluster_config()
        LOG.info("using in-cluster Kubernetes configuration")
    except config.ConfigException:
        config.load_kube_config(config_file=kubeconfig)
        LOG.info("using local kubeconfig %s", kubeconfig or "(default)")


class KubernetesServiceWatcher(Thread):
    """List and watch services, re-listing every ``interval`` seconds.

    Each list publishes an upsert for every service, so already reconciled
    services are re-delivered periodically.  Services missing from a list
    but seen before are published as deletes.  When no Kubernetes
    configuration can be loaded the shared stop event is set and
    ``on_fatal`` is called with the error.
    """

    def __init__(
        self,
        sink,
        *,
        interval: float,
        stop_event: Event,
        shared_ip_annotation: str = DEFAULT_SHARED_IP_ANNOTATION,
        namespace: Optional[str] = None,
        kubeconfig: Optional[str] = None,
        api: Optional[client.CoreV1Api] = None,
        on_fatal: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        super().__init__(daemon=True)
        self._sink = sink
        self._interval = interval
        self._stop_event = stop_event
        self._shared_ip_annotation = shared_ip_annotation
        self._namespace = namespace or None
        self._kubeconfig = kubeconfig
        self._api = api
        self._on_fatal = on_fatal
        self._known: Dict[str, ServiceSnapshot] = {}

    def run(self) -> None:
        if self._api is None:
            try:
                load_kube_config(self._kubeconfig)
            except (config.ConfigException, OSError) as exc:
                LOG.error("Error loading Kubernetes configuration: %s", exc)
                self._stop_event.set()
                if self._on_fatal is not None:
                    self._on_fatal(exc)
                return
            self._api = client.CoreV1Api()

        LOG.info(
            "Starting Kubernetes service watcher (namespace=%s, resync=%ss)",
            self._namespace or "*",
            self._interval,
        )
        while not self._stop_event.is_set():
            try:
                resource_version = self.resync()
                self._watch(resource_version)
            except ApiException as exc:
                if exc.status == 410:
                    LOG.info("service watch expired, relisting")
                    continue
                LOG.error("Kubernetes API error: %s", exc)
                self._stop_event.wait(self._interval)
            except Exception:  # pragma: no cover - defensive logging
                LOG.exception("Kubernetes service watcher encountered an error")
                self._stop_event.wait(self._interval)
        LOG.info("Stopping Kubernetes service watcher")

    def resync(self) -> str:
        """List services, publish their state and return the resource version."""

        list_func, args = self._list_call()
        services = list_func(*args)
        current: Dict[str, ServiceSnapshot] = {}
        for item in services.items or []:
            snapshot = service_from_k8s(item, self._shared_ip_annotation)
            current[snapshot.key] = snapshot
            self._sink.handle(ServiceUpsert(snapshot))

        for key in set(self._known) - set(current):
            LOG.debug("service %s vanished between lists", key)
            self._sink.handle(ServiceDelete(self._known[key].owner))

        self._known = current
        LOG.debug("resync published %d services", len(current))
        return services.metadata.resource_version

    def dispatch(self, event_type: str, service: Any) -> None:
        """Translate one watch event into a service event."""

        if event_type == "ERROR":
            LOG.warning("service watch reported an error: %s", service)
            return

        snapshot = service_from_k8s(service, self._shared_ip_annotation)
        if event_type in ("ADDED", "MODIFIED"):
            self._known[snapshot.key] = snapshot
            self._sink.handle(ServiceUpsert(snapshot))
        elif event_type == "DELETED":
            self._known.pop(snapshot.key, None)
            self._sink.handle(ServiceDelete(snapshot.owner))
        else:
            LOG.debug("ignoring %s event for %s", event_type, snapshot.key)

    def _watch(self, resource_version: str) -> None:
        list_func, args = self._list_call()
        stream = watch.Watch()
        for event in stream.stream(
            list_func,
            *args,
            resource_version=resource_version,
            timeout_seconds=max(int(self._interval), 1),
        ):
            if self._stop_event.is_set():
                stream.stop()
                break
            self.dispatch(event["type"], event["object"])

    def _list_call(self) -> Tuple[Callable[..., Any], Tuple[str, ...]]:
        if self._namespace:
            return self._api.list_namespaced_service, (self._namespace,)
        return self._api.list_service_for_all_namespaces, ()
