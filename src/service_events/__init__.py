"""Service event plumbing between watchers and the reconciliation engine."""

from .events import ServiceDelete, ServiceUpsert  # noqa: F401
from .registry import HandlerRegistry  # noqa: F401
from .worker import EventWorker  # noqa: F401

__all__ = [
    "EventWorker",
    "HandlerRegistry",
    "ServiceDelete",
    "ServiceUpsert",
]
