from ipam_reconciler.config import AddressingRule
from ipam_reconciler.models import ServiceSnapshot
from ipam_reconciler.plan import PlannedReservation, plan_reservations


def test_plan_lists_matching_addresses():
    services = [
        ServiceSnapshot("default", "web", "LoadBalancer", None, ("203.0.113.10", "10.96.0.1")),
        ServiceSnapshot("dev", "api", "LoadBalancer", "shared", ("203.0.113.11",)),
    ]
    rules = [AddressingRule("203.0.113.0/24", namespace="default")]

    assert plan_reservations(services, rules) == [
        PlannedReservation(
            address="203.0.113.10",
            owner="default/web",
            cidr="203.0.113.0/24",
            service="default/web",
        )
    ]
