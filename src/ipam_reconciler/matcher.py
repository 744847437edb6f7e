"""Select the addressing rules that apply to a service."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from .config import AddressingRule
from .models import ServiceSnapshot

LOG = logging.getLogger(__name__)


class PolicyMatcher:
    """Evaluate an ordered rule list against service snapshots.

    Regular expressions are compiled once.  A rule whose expression does not
    compile is reported as a configuration error and never matches for the
    lifetime of the matcher.
    """

    def __init__(self, rules: Sequence[AddressingRule]) -> None:
        self._rules: List[Tuple[AddressingRule, Optional[Pattern[str]]]] = []
        self._disabled: List[AddressingRule] = []
        for rule in rules:
            pattern: Optional[Pattern[str]] = None
            if rule.regex is not None:
                try:
                    pattern = re.compile(rule.regex)
                except re.error as exc:
                    LOG.error(
                        "Error compiling regex %r for subnet %s, rule disabled: %s",
                        rule.regex,
                        rule.cidr,
                        exc,
                    )
                    self._disabled.append(rule)
                    continue
            self._rules.append((rule, pattern))

    @property
    def disabled_rules(self) -> Sequence[AddressingRule]:
        return list(self._disabled)

    def match(self, snapshot: ServiceSnapshot) -> List[AddressingRule]:
        """Return every enabled rule satisfied by ``snapshot``, in order."""

        return [
            rule
            for rule, pattern in self._rules
            if _rule_applies(rule, pattern, snapshot)
        ]


def _rule_applies(
    rule: AddressingRule,
    pattern: Optional[Pattern[str]],
    snapshot: ServiceSnapshot,
) -> bool:
    if rule.namespace is not None and rule.namespace != snapshot.namespace:
        return False
    if rule.service_type is not None and rule.service_type != snapshot.service_type:
        return False
    if pattern is not None and pattern.fullmatch(snapshot.name) is None:
        return False
    return True


def match_rules(
    snapshot: ServiceSnapshot, rules: Sequence[AddressingRule]
) -> List[AddressingRule]:
    """Convenience wrapper building a throwaway :class:`PolicyMatcher`."""

    return PolicyMatcher(rules).match(snapshot)
