import pytest

from ipam_reconciler.config import AddressingRule
from ipam_reconciler.engine import ReconciliationEngine
from ipam_reconciler.models import ServiceSnapshot
from service_events import HandlerRegistry, ServiceDelete, ServiceUpsert
from service_events.handlers import build_engine_adapter


def build_engine(registry_client) -> ReconciliationEngine:
    registry_client.add_subnet("203.0.113.0/24")
    return ReconciliationEngine(registry_client, [AddressingRule("203.0.113.0/24")])


def test_registry_dispatches_events(registry):
    engine = build_engine(registry)
    handlers = HandlerRegistry()
    handlers.register("phpipam", build_engine_adapter(engine))

    snapshot = ServiceSnapshot("demo", "web", "LoadBalancer", None, ("203.0.113.50",))
    handlers.handle(ServiceUpsert(snapshot))

    assert engine.cache.owner_of("203.0.113.50") == "demo/web"

    handlers.handle(ServiceDelete("demo/web"))

    assert engine.cache.owned_addresses() == {}
    assert registry.records == {}


def test_registry_rejects_duplicate_registration(registry):
    handlers = HandlerRegistry()
    adapter = build_engine_adapter(build_engine(registry))

    handlers.register("phpipam", adapter)

    with pytest.raises(ValueError):
        handlers.register("phpipam", adapter)


def test_registry_rejects_unknown_events():
    with pytest.raises(TypeError):
        HandlerRegistry().handle("default/web")  # type: ignore[arg-type]
