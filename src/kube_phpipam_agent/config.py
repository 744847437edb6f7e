"""YAML configuration loader for the kube-phpipam agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from ipam_reconciler.config import AddressingRule, parse_rule
from ipam_reconciler.models import DEFAULT_SHARED_IP_ANNOTATION
from phpipam_api import DEFAULT_NOTE


@dataclass
class PhpIpamConfig:
    host: str
    app_id: str
    username: str
    password: str
    verify_tls: bool = True
    timeout: Optional[float] = None
    note: str = DEFAULT_NOTE


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 60.0
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    phpipam: PhpIpamConfig
    subnets: Sequence[AddressingRule] = field(default_factory=list)
    watchers: Sequence[WatcherConfig] = field(default_factory=list)
    shared_ip_annotation: str = DEFAULT_SHARED_IP_ANNOTATION


def _parse_phpipam(section: dict) -> PhpIpamConfig:
    if not isinstance(section, dict):
        raise ValueError("'phpipam' section must be a mapping")
    for key in ("host", "username", "password"):
        if not section.get(key):
            raise ValueError(f"'phpipam' section missing '{key}'")
    app_id = section.get("app_id", section.get("appId"))
    if not app_id:
        raise ValueError("'phpipam' section missing 'app_id'")

    verify_tls = section.get("verify_tls", True)
    if not isinstance(verify_tls, bool):
        raise ValueError("'phpipam.verify_tls' must be true or false")

    timeout = section.get("timeout")
    return PhpIpamConfig(
        host=str(section["host"]),
        app_id=str(app_id),
        username=str(section["username"]),
        password=str(section["password"]),
        verify_tls=verify_tls,
        timeout=None if timeout is None else float(timeout),
        note=str(section.get("note", DEFAULT_NOTE)),
    )


def _parse_subnets(entries: Iterable[dict]) -> List[AddressingRule]:
    rules: List[AddressingRule] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("each 'subnets' entry must be a mapping")
        rules.append(parse_rule(entry))
    return rules


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("watcher 'options' must be a mapping if provided")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("resync_interval", 60.0))),
                options=options,
            )
        )
    return watchers


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    phpipam_section = data.get("phpipam")
    if phpipam_section is None:
        raise ValueError("Configuration missing 'phpipam' section")
    phpipam = _parse_phpipam(phpipam_section)

    subnets_section = data.get("subnets", [])
    if not isinstance(subnets_section, list):
        raise ValueError("'subnets' section must be a list")
    subnets = _parse_subnets(subnets_section)

    watchers_section = data.get("watchers")
    if watchers_section is None:
        watchers = [WatcherConfig(type="kubernetes", path=Path("."))]
    elif not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    else:
        watchers = _parse_watchers(watchers_section)

    return AgentConfig(
        phpipam=phpipam,
        subnets=subnets,
        watchers=watchers,
        shared_ip_annotation=str(
            data.get("shared_ip_annotation", DEFAULT_SHARED_IP_ANNOTATION)
        ),
    )
