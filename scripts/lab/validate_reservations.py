#!/usr/bin/env python3
"""Validate phpIPAM reservations against a service list."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Dict, List

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from ipam_reconciler.errors import RegistryError  # noqa: E402
from ipam_reconciler.plan import PlannedReservation, plan_reservations  # noqa: E402
from kube_phpipam_agent.config import AgentConfig, load_config  # noqa: E402
from kube_phpipam_agent.watchers.utils import service_from_mapping  # noqa: E402
from phpipam_api import PhpIpamClient  # noqa: E402


class ValidationError(RuntimeError):
    pass


def load_expected(services_file: Path, config: AgentConfig) -> List[PlannedReservation]:
    data = json.loads(services_file.read_text())
    snapshots = [
        service_from_mapping(item, config.shared_ip_annotation)
        for item in data.get("items", [])
    ]
    return plan_reservations(snapshots, config.subnets)


def check_reservations(client: PhpIpamClient, expected: List[PlannedReservation]) -> None:
    problems: List[str] = []
    owners: Dict[str, str] = {}
    for entry in expected:
        previous = owners.setdefault(entry.address, entry.owner)
        if previous != entry.owner:
            problems.append(
                f"{entry.address} claimed by both {previous} and {entry.owner}"
            )

    for address, owner in owners.items():
        try:
            found = client.find_reservation(address)
        except RegistryError as exc:
            problems.append(f"{address}: lookup failed: {exc}")
            continue
        if not found:
            problems.append(f"{address}: missing, expected hostname {owner}")
        elif len(found) > 1:
            problems.append(f"{address}: {len(found)} reservations present")
        elif found[0].hostname != owner:
            problems.append(
                f"{address}: hostname {found[0].hostname!r}, expected {owner!r}"
            )

    if problems:
        raise ValidationError("; ".join(problems))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.environ.get("KUBE_PHPIPAM_CONFIG", "config.yaml")),
    )
    parser.add_argument(
        "--services",
        type=Path,
        default=Path(os.environ.get("SERVICES_FILE", REPO_ROOT / "deploy/services.json")),
    )
    args = parser.parse_args()

    if not args.services.exists():
        raise SystemExit(f"services definition not found: {args.services}")

    config = load_config(args.config)
    expected = load_expected(args.services, config)
    client = PhpIpamClient(
        config.phpipam.host,
        config.phpipam.app_id,
        config.phpipam.username,
        config.phpipam.password,
        verify_tls=config.phpipam.verify_tls,
        timeout=config.phpipam.timeout,
    )
    try:
        client.authenticate()
    except RegistryError as exc:
        raise ValidationError(f"authentication failed: {exc}") from exc
    try:
        check_reservations(client, expected)
    finally:
        client.close()

    print(f"phpIPAM validation succeeded ({len(expected)} reservations)")


if __name__ == "__main__":
    try:
        main()
    except ValidationError as exc:
        print(f"[validate_reservations] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
