import pytest

from ipam_reconciler.cache import OwnershipCache
from ipam_reconciler.errors import SubnetResolutionError


def test_subnet_resolved_once(registry):
    registry.add_subnet("203.0.113.0/24", "42")
    cache = OwnershipCache()

    first = cache.resolve_subnet(registry, "203.0.113.0/24")
    second = cache.resolve_subnet(registry, "203.0.113.0/24")

    assert first is second
    assert first.subnet_id == "42"
    assert len(registry.calls_named("lookup_subnet_by_range")) == 1


def test_subnet_resolution_failure_not_cached(registry):
    cache = OwnershipCache()

    with pytest.raises(SubnetResolutionError):
        cache.resolve_subnet(registry, "203.0.113.0/24")

    registry.add_subnet("203.0.113.0/24")
    handle = cache.resolve_subnet(registry, "203.0.113.0/24")

    assert handle.cidr == "203.0.113.0/24"
    assert len(registry.calls_named("lookup_subnet_by_range")) == 2


def test_ambiguous_subnet_rejected(registry):
    registry.add_subnet("203.0.113.0/24", "1")
    registry.add_subnet("203.0.113.0/24", "2")
    cache = OwnershipCache()

    with pytest.raises(SubnetResolutionError) as excinfo:
        cache.resolve_subnet(registry, "203.0.113.0/24")

    assert excinfo.value.matches == 2
    assert cache.subnet_for("203.0.113.0/24") is None


def test_addresses_owned_by():
    cache = OwnershipCache()
    cache.record_owner("10.0.0.1", "default/web")
    cache.record_owner("10.0.0.2", "default/api")
    cache.record_owner("10.1.0.1", "default/web")

    assert sorted(cache.addresses_owned_by("default/web")) == ["10.0.0.1", "10.1.0.1"]

    cache.forget_address("10.0.0.1")
    cache.forget_address("10.9.9.9")

    assert cache.owned_addresses() == {"10.0.0.2": "default/api", "10.1.0.1": "default/web"}
    assert cache.owner_of("10.0.0.1") is None
