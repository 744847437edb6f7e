"""Error taxonomy shared by the engine and registry client implementations."""

from __future__ import annotations

from typing import Optional


class ReconcilerError(Exception):
    """Base class for every error raised by the reconciliation packages."""


class ConfigurationError(ReconcilerError):
    """Invalid rule or registry layout; the affected rule is skipped."""


class SubnetResolutionError(ConfigurationError):
    """A rule CIDR did not resolve to exactly one registry subnet."""

    def __init__(self, cidr: str, matches: int) -> None:
        if matches == 0:
            detail = f"no subnet found matching CIDR {cidr}"
        else:
            detail = f"multiple subnets ({matches}) found matching CIDR {cidr}"
        super().__init__(detail)
        self.cidr = cidr
        self.matches = matches


class ConsistencyError(ReconcilerError):
    """The registry holds more than one reservation for a single address."""

    def __init__(self, address: str, count: int) -> None:
        super().__init__(f"multiple reservations ({count}) found matching {address}")
        self.address = address
        self.count = count


class RegistryError(ReconcilerError):
    """Base class for failures reported by a registry client."""


class RegistryNotFoundError(RegistryError):
    """The requested registry object does not exist."""


class RegistryTransportError(RegistryError):
    """The registry could not be reached or returned an unusable response."""


class RegistryAuthError(RegistryTransportError):
    """The registry rejected our credentials."""


class RegistryApplicationError(RegistryError):
    """A non-2xx status code embedded in an otherwise successful response."""

    def __init__(self, code: Optional[int], message: str) -> None:
        super().__init__(f"registry returned code {code}: {message}")
        self.code = code
        self.message = message
