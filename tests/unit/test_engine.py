from ipam_reconciler.config import AddressingRule
from ipam_reconciler.engine import ReconciliationEngine
from ipam_reconciler.models import ServiceSnapshot, owner_identifier
from ipam_reconciler.synchronizer import SyncOutcome


def web_service(**overrides) -> ServiceSnapshot:
    values = dict(
        namespace="default",
        name="web",
        service_type="LoadBalancer",
        address_candidates=("203.0.113.10", "10.96.0.15"),
    )
    values.update(overrides)
    return ServiceSnapshot(**values)


def test_add_then_remove_service(registry):
    registry.add_subnet("203.0.113.0/24", "12")
    engine = ReconciliationEngine(registry, [AddressingRule("203.0.113.0/24")])

    engine.on_service_upsert(web_service())

    assert registry.calls == [
        ("lookup_subnet_by_range", "203.0.113.0/24"),
        ("find_reservation", "203.0.113.10"),
        ("create_reservation", "12", "203.0.113.10", "default/web"),
    ]
    record_id = next(iter(registry.records))

    registry.calls.clear()
    engine.on_service_delete("default/web")

    assert registry.calls_named("delete_reservation") == [("delete_reservation", record_id)]
    assert registry.records == {}
    assert engine.cache.owned_addresses() == {}


def test_resync_does_not_duplicate_work(registry):
    registry.add_subnet("203.0.113.0/24")
    engine = ReconciliationEngine(registry, [AddressingRule("203.0.113.0/24")])

    engine.on_service_upsert(web_service())
    report = engine.on_service_upsert(web_service())

    assert [r.outcome for r in report.results] == [SyncOutcome.UNCHANGED]
    assert len(registry.calls_named("create_reservation")) == 1
    assert len(registry.calls_named("lookup_subnet_by_range")) == 1


def test_shared_ip_override_owner(registry):
    registry.add_subnet("203.0.113.0/24")
    engine = ReconciliationEngine(registry, [AddressingRule("203.0.113.0/24")])
    service = web_service(name="web2", shared_ip_name="shared-lb")

    report = engine.on_service_upsert(service)

    assert service.owner == "default/shared-lb"
    assert report.owner == "default/shared-lb"
    assert registry.calls_named("create_reservation")[0][3] == "default/shared-lb"
    assert engine.cache.owner_of("203.0.113.10") == "default/shared-lb"


def test_owner_identifier():
    assert owner_identifier("default", "web") == "default/web"
    assert owner_identifier("default", "web2", "shared-lb") == "default/shared-lb"
    assert owner_identifier("default", "web2", "") == "default/web2"


def test_multiple_rules_applied_independently(registry):
    registry.add_subnet("203.0.113.0/24", "1")
    registry.add_subnet("10.96.0.0/16", "2")
    rules = [
        AddressingRule("203.0.113.0/24", service_type="LoadBalancer"),
        AddressingRule("10.96.0.0/16", namespace="default"),
        AddressingRule("198.51.100.0/24"),
    ]
    engine = ReconciliationEngine(registry, rules)

    engine.on_service_upsert(web_service())

    assert sorted(call[1:] for call in registry.calls_named("create_reservation")) == [
        ("1", "203.0.113.10", "default/web"),
        ("2", "10.96.0.15", "default/web"),
    ]
    # no candidate falls in the third range so its subnet is never resolved
    assert ("lookup_subnet_by_range", "198.51.100.0/24") not in registry.calls

    engine.on_service_delete("default/web")

    assert len(registry.calls_named("delete_reservation")) == 2
    assert registry.records == {}


def test_unresolvable_subnet_skips_rule(registry):
    registry.add_subnet("10.96.0.0/16")
    rules = [AddressingRule("203.0.113.0/24"), AddressingRule("10.96.0.0/16")]
    engine = ReconciliationEngine(registry, rules)

    report = engine.on_service_upsert(web_service())

    assert report.rules[0].error is not None
    assert report.rules[0].results == []
    assert [r.address for r in report.results] == ["10.96.0.15"]


def test_namespace_filter_excludes_other_namespaces(registry):
    registry.add_subnet("203.0.113.0/24")
    engine = ReconciliationEngine(registry, [AddressingRule("203.0.113.0/24", namespace="prod")])

    report = engine.on_service_upsert(web_service(namespace="dev"))

    assert report.rules == []
    assert registry.calls == []


def test_delete_with_bare_key_only_matches_exact_owner(registry):
    registry.add_subnet("203.0.113.0/24")
    engine = ReconciliationEngine(registry, [AddressingRule("203.0.113.0/24")])
    engine.on_service_upsert(web_service(name="web2", shared_ip_name="shared-lb"))

    engine.on_service_delete("default/web2")

    assert registry.calls_named("delete_reservation") == []
    assert engine.cache.owner_of("203.0.113.10") == "default/shared-lb"
