"""phpIPAM API client used as the reservation registry."""

from .client import DEFAULT_NOTE, PhpIpamClient  # noqa: F401

__all__ = [
    "DEFAULT_NOTE",
    "PhpIpamClient",
]
