"""Process-local ownership cache."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .errors import SubnetResolutionError
from .models import SubnetHandle
from .registry_client import RegistryClient

LOG = logging.getLogger(__name__)


class OwnershipCache:
    """Track resolved registry subnets and which owner holds each address.

    The cache lives as long as the engine that owns it.  It is only touched
    from the single event worker, so it takes no locks.
    """

    def __init__(self) -> None:
        self._subnets: Dict[str, SubnetHandle] = {}
        self._owners: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Subnet handles
    # ------------------------------------------------------------------
    def resolve_subnet(self, client: RegistryClient, cidr: str) -> SubnetHandle:
        """Return the subnet for ``cidr``, asking the registry on first use.

        Resolution failures propagate and are not cached.
        """

        handle = self._subnets.get(cidr)
        if handle is not None:
            return handle

        handle = client.lookup_subnet_by_range(cidr)
        if handle is None:
            raise SubnetResolutionError(cidr, 0)
        LOG.debug("Resolved CIDR %s to registry subnet %s", cidr, handle.subnet_id)
        self._subnets[cidr] = handle
        return handle

    def subnet_for(self, cidr: str) -> Optional[SubnetHandle]:
        return self._subnets.get(cidr)

    # ------------------------------------------------------------------
    # Address ownership
    # ------------------------------------------------------------------
    def record_owner(self, address: str, owner: str) -> None:
        self._owners[address] = owner

    def forget_address(self, address: str) -> None:
        self._owners.pop(address, None)

    def owner_of(self, address: str) -> Optional[str]:
        return self._owners.get(address)

    def addresses_owned_by(self, owner: str) -> List[str]:
        return [address for address, holder in self._owners.items() if holder == owner]

    def owned_addresses(self) -> Dict[str, str]:
        return dict(self._owners)
