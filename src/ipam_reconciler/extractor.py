"""Derive candidate addresses of a service that fall inside a rule range."""

from __future__ import annotations

import ipaddress
from typing import Iterable, List, Optional

from .config import IPNetwork


def _parse_address(value: Optional[str]):
    if not value:
        return None
    try:
        return ipaddress.ip_address(value.strip())
    except ValueError:
        return None


def extract_addresses(candidates: Iterable[Optional[str]], network: IPNetwork) -> List[str]:
    """Return valid addresses from ``candidates`` contained in ``network``.

    Order is preserved and duplicates are dropped.  Values that do not parse
    (empty strings, ``"None"`` for headless services) are ignored; an
    address of the other IP family is simply outside the range.
    """

    selected: dict[str, None] = {}
    for candidate in candidates:
        address = _parse_address(candidate)
        if address is None or address.version != network.version:
            continue
        if address in network:
            selected.setdefault(str(address))
    return list(selected)
