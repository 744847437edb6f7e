"""Entry point for the kube-phpipam agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event
from typing import List

from ipam_reconciler.engine import ReconciliationEngine
from ipam_reconciler.errors import RegistryError
from phpipam_api import PhpIpamClient
from service_events import EventWorker, HandlerRegistry
from service_events.handlers import build_engine_adapter

from .config import AgentConfig, load_config
from .watchers import FileServiceWatcher, KubernetesServiceWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def build_watchers(config: AgentConfig, sink, stop_event: Event, on_fatal=None) -> List:
    watchers = []
    for watcher_cfg in config.watchers:
        if watcher_cfg.type == "file":
            watcher = FileServiceWatcher(
                sink=sink,
                path=watcher_cfg.path,
                interval=watcher_cfg.interval,
                stop_event=stop_event,
                shared_ip_annotation=config.shared_ip_annotation,
            )
        elif watcher_cfg.type == "kubernetes":
            watcher = KubernetesServiceWatcher(
                sink,
                interval=watcher_cfg.interval,
                stop_event=stop_event,
                shared_ip_annotation=config.shared_ip_annotation,
                namespace=watcher_cfg.options.get("namespace"),
                kubeconfig=watcher_cfg.options.get("kubeconfig"),
                on_fatal=on_fatal,
            )
        else:
            raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")
        watchers.append(watcher)
    return watchers


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the kube-phpipam agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        LOG.error("Unable to read configuration file %s: %s", args.config, exc)
        return 1

    stop_event = Event()
    fatal = Event()

    def _on_fatal(exc: Exception) -> None:
        fatal.set()
        stop_event.set()

    client = PhpIpamClient(
        config.phpipam.host,
        config.phpipam.app_id,
        config.phpipam.username,
        config.phpipam.password,
        verify_tls=config.phpipam.verify_tls,
        timeout=config.phpipam.timeout,
        note=config.phpipam.note,
        on_fatal=_on_fatal,
    )
    try:
        client.start()
    except RegistryError as exc:
        LOG.error("%s", exc)
        return 1

    engine = ReconciliationEngine(client, config.subnets)
    registry = HandlerRegistry()
    registry.register("phpipam", build_engine_adapter(engine))

    worker = EventWorker(registry, stop_event)
    worker.start()

    watchers = build_watchers(config, worker, stop_event, on_fatal=_on_fatal)
    for watcher in watchers:
        watcher.start()

    if not watchers:
        LOG.warning("no watchers configured; agent will idle")

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join(timeout=5.0)
    worker.join(timeout=5.0)
    client.close()

    if fatal.is_set():
        LOG.critical("kube-phpipam agent stopped after a fatal error")
        return 1
    LOG.info("kube-phpipam agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
