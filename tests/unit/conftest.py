import itertools
from typing import Dict, List, Optional

import pytest

from ipam_reconciler.errors import SubnetResolutionError
from ipam_reconciler.models import Reservation, SubnetHandle
from ipam_reconciler.registry_client import RegistryClient


class FakeRegistry(RegistryClient):
    """In-memory registry recording every call made against it."""

    def __init__(self) -> None:
        self.subnets: Dict[str, List[str]] = {}
        self.records: Dict[str, Reservation] = {}
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self._ids = itertools.count(100)

    def add_subnet(self, cidr: str, subnet_id: str = "7") -> None:
        self.subnets.setdefault(cidr, []).append(subnet_id)

    def add_record(self, address: str, hostname: Optional[str], subnet_id: str = "7") -> str:
        record_id = str(next(self._ids))
        self.records[record_id] = Reservation(
            address=address, record_id=record_id, subnet_id=subnet_id, hostname=hostname
        )
        return record_id

    def calls_named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def _maybe_fail(self, name: str) -> None:
        if name in self.failures:
            raise self.failures[name]

    def lookup_subnet_by_range(self, cidr):
        self.calls.append(("lookup_subnet_by_range", cidr))
        self._maybe_fail("lookup_subnet_by_range")
        matches = self.subnets.get(cidr, [])
        if len(matches) != 1:
            raise SubnetResolutionError(cidr, len(matches))
        return SubnetHandle(subnet_id=matches[0], cidr=cidr)

    def find_reservation(self, address):
        self.calls.append(("find_reservation", address))
        self._maybe_fail("find_reservation")
        return [r for r in self.records.values() if r.address == address]

    def create_reservation(self, subnet, address, owner):
        self.calls.append(("create_reservation", subnet.subnet_id, address, owner))
        self._maybe_fail("create_reservation")
        record_id = self.add_record(address, owner, subnet.subnet_id)
        return self.records[record_id]

    def update_reservation_owner(self, record_id, owner):
        self.calls.append(("update_reservation_owner", record_id, owner))
        self._maybe_fail("update_reservation_owner")
        current = self.records[record_id]
        self.records[record_id] = Reservation(
            address=current.address,
            record_id=record_id,
            subnet_id=current.subnet_id,
            hostname=owner,
        )

    def delete_reservation(self, record_id):
        self.calls.append(("delete_reservation", record_id))
        self._maybe_fail("delete_reservation")
        self.records.pop(record_id)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()
