#!/usr/bin/env python3
"""Print the phpIPAM reservations a service list would produce."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from ipam_reconciler.models import ServiceSnapshot  # noqa: E402
from ipam_reconciler.plan import plan_reservations  # noqa: E402
from kube_phpipam_agent.config import load_config  # noqa: E402
from kube_phpipam_agent.watchers.utils import service_from_mapping  # noqa: E402


LOG = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Agent configuration file providing the subnet rules",
    )
    parser.add_argument(
        "--services",
        type=Path,
        required=True,
        help="Output of 'kubectl get services -A -o json'",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the plan as JSON instead of a table",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def load_services(path: Path, annotation: str) -> List[ServiceSnapshot]:
    with path.open() as fh:
        payload = json.load(fh)
    return [service_from_mapping(item, annotation) for item in payload.get("items", [])]


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config)
    services = load_services(args.services, config.shared_ip_annotation)
    planned = plan_reservations(services, config.subnets)

    if not planned:
        LOG.warning("No service address falls inside a configured subnet")

    if args.json:
        print(json.dumps([p.__dict__ for p in planned], indent=2))
        return

    for entry in planned:
        print(f"{entry.address:<40} {entry.cidr:<20} {entry.owner:<40} {entry.service}")


if __name__ == "__main__":
    main()
