"""Handlers exposed to the registry."""

from .base import ServiceHandler  # noqa: F401
from .engine_adapter import EngineHandlerAdapter, build_engine_adapter  # noqa: F401

__all__ = [
    "EngineHandlerAdapter",
    "ServiceHandler",
    "build_engine_adapter",
]
