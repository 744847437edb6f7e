import logging

import pytest

from ipam_reconciler.config import AddressingRule
from ipam_reconciler.matcher import PolicyMatcher, match_rules
from ipam_reconciler.models import ServiceSnapshot


def snapshot(namespace="prod", name="web-frontend", service_type="LoadBalancer"):
    return ServiceSnapshot(namespace=namespace, name=name, service_type=service_type)


@pytest.mark.parametrize(
    "rule, service, expected",
    [
        (AddressingRule("10.0.0.0/24"), snapshot(), True),
        (AddressingRule("10.0.0.0/24", namespace="prod"), snapshot(), True),
        (AddressingRule("10.0.0.0/24", namespace="prod"), snapshot(namespace="dev"), False),
        (AddressingRule("10.0.0.0/24", service_type="LoadBalancer"), snapshot(), True),
        (
            AddressingRule("10.0.0.0/24", service_type="LoadBalancer"),
            snapshot(service_type="ClusterIP"),
            False,
        ),
        (AddressingRule("10.0.0.0/24", regex="web-.*"), snapshot(), True),
        (AddressingRule("10.0.0.0/24", regex="web"), snapshot(), False),
        (AddressingRule("10.0.0.0/24", regex="frontend"), snapshot(), False),
        (AddressingRule("10.0.0.0/24", regex="prod/web-.*"), snapshot(), False),
        (
            AddressingRule("10.0.0.0/24", namespace="prod", service_type="LoadBalancer", regex="web-.*"),
            snapshot(),
            True,
        ),
        (
            AddressingRule("10.0.0.0/24", namespace="prod", service_type="LoadBalancer", regex="api-.*"),
            snapshot(),
            False,
        ),
        (
            AddressingRule("10.0.0.0/24", namespace="dev", service_type="LoadBalancer", regex="web-.*"),
            snapshot(),
            False,
        ),
    ],
)
def test_rule_predicates(rule, service, expected):
    assert (match_rules(service, [rule]) == [rule]) is expected


def test_all_matching_rules_returned_in_order():
    rules = [
        AddressingRule("10.0.0.0/24", namespace="prod"),
        AddressingRule("10.1.0.0/24", namespace="dev"),
        AddressingRule("203.0.113.0/24"),
    ]

    assert match_rules(snapshot(), rules) == [rules[0], rules[2]]


def test_malformed_regex_disables_rule(caplog):
    broken = AddressingRule("10.0.0.0/24", regex="web-(")
    valid = AddressingRule("10.1.0.0/24")

    with caplog.at_level(logging.ERROR):
        matcher = PolicyMatcher([broken, valid])

    assert matcher.disabled_rules == [broken]
    assert "Error compiling regex" in caplog.text

    caplog.clear()
    assert matcher.match(snapshot()) == [valid]
    assert matcher.match(snapshot(name="web-(")) == [valid]
    assert caplog.text == ""
