"""
Recommendation engine: best-practice checks over retained datasets.

Rules never query the controller. Each reads only the datasets named in its
``inputs`` (already filtered by the catalog), so verdicts always agree with
the tables rendered beside them.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from ._util import debug as _debug_fn, to_number
from .errors import ConfigurationError
from .schema import EntityRecord, RuleResult, Verdict

Datasets = Dict[str, List[EntityRecord]]

UPDATING_TEMPLATE = "updating-template"
# UCSM reports "non-redund"; older exports spell it out.
NON_REDUNDANT = ("non-redund", "non-redundant")


def _debug(msg: str) -> None:
    _debug_fn("recommendations", msg)


class RuleDefinition(BaseModel):
    description: str
    inputs: Tuple[str, ...]
    evaluate: Callable[[Datasets], Verdict]

    model_config = {"frozen": True}


def _first(records: List[EntityRecord]) -> Optional[EntityRecord]:
    return records[0] if records else None


def _format_quantity(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


# ---------------------------------------------------------------------------
# Rule bodies
# ---------------------------------------------------------------------------

def _not_empty(dataset: str) -> Callable[[Datasets], Verdict]:
    def check(data: Datasets) -> Verdict:
        return Verdict.ok() if data[dataset] else Verdict.failed()
    return check


def _telnet_disabled(data: Datasets) -> Verdict:
    if any(r.get("adminState") == "enabled" for r in data["telnet"]):
        return Verdict.failed()
    return Verdict.ok()


def _call_home_on(data: Datasets) -> Verdict:
    rec = _first(data["call_home"])
    if rec is None or rec.get("adminState") == "off":
        return Verdict.failed()
    return Verdict.ok()


def _licenses_sufficient(scope: str) -> Callable[[Datasets], Verdict]:
    def check(data: Datasets) -> Verdict:
        lines = [r for r in data["ucs_licenses"] if r.get("scope") == scope]
        used = sum(to_number(r.get("usedQuant")) for r in lines)
        absolute = sum(to_number(r.get("absQuant")) for r in lines)
        if absolute >= used:
            return Verdict.ok(detail=_format_quantity(absolute - used))
        return Verdict.failed()
    return check


def _chassis_port_channel(data: Datasets) -> Verdict:
    rec = _first(data["chassis_discovery_policy"])
    if rec is not None and rec.get("linkAggregationPref") == "port-channel":
        return Verdict.ok()
    return Verdict.failed()


def _uplink_port_channel(side: str) -> Callable[[Datasets], Verdict]:
    def check(data: Datasets) -> Verdict:
        if any(r.get("switchId") == side for r in data["uplink_port_channels"]):
            return Verdict.ok()
        return Verdict.failed()
    return check


def _power_redundant(data: Datasets) -> Verdict:
    rec = _first(data["power_redundancy_policy"])
    if rec is None:
        return Verdict.failed()
    mode = rec.get("redundancy", "")
    if mode in NON_REDUNDANT:
        return Verdict.failed()
    return Verdict.ok(detail=mode)


def _maintenance_user_ack(data: Datasets) -> Verdict:
    immediate = {
        p.get("name") for p in data["maintenance_policies"]
        if p.get("uptimeDisr") == "immediate"
    }
    offenders = [
        sp.get("dn") or sp.get("name", "")
        for sp in data["associated_service_profiles"]
        if sp.get("maintPolicyName") in immediate
    ]
    if offenders:
        return Verdict.failed(items=offenders)
    return Verdict.ok()


def _templates_updating(dataset: str) -> Callable[[Datasets], Verdict]:
    def check(data: Datasets) -> Verdict:
        offenders = [
            t.get("name", "") for t in data[dataset]
            if t.get("templType") != UPDATING_TEMPLATE
        ]
        if offenders:
            return Verdict.failed(items=offenders)
        return Verdict.ok()
    return check


def _no_critical_faults(data: Datasets) -> Verdict:
    critical = [f.get("id") or f.get("dn", "") for f in data["faults"] if f.get("severity") == "critical"]
    if critical:
        return Verdict.failed(items=critical)
    return Verdict.ok()


def _rule(description: str, inputs: Sequence[str], evaluate: Callable[[Datasets], Verdict]) -> RuleDefinition:
    return RuleDefinition(description=description, inputs=tuple(inputs), evaluate=evaluate)


RULES = (
    _rule("DNS servers are configured", ["dns_servers"], _not_empty("dns_servers")),
    _rule("NTP servers are configured", ["ntp_servers"], _not_empty("ntp_servers")),
    _rule("Telnet is disabled", ["telnet"], _telnet_disabled),
    _rule("Call Home is configured", ["call_home"], _call_home_on),
    _rule("Fabric A has sufficient port licenses (remaining shown)",
          ["ucs_licenses"], _licenses_sufficient("A")),
    _rule("Fabric B has sufficient port licenses (remaining shown)",
          ["ucs_licenses"], _licenses_sufficient("B")),
    _rule("Chassis links are configured as port-channel",
          ["chassis_discovery_policy"], _chassis_port_channel),
    _rule("Fabric A uplinks are configured as port-channel",
          ["uplink_port_channels"], _uplink_port_channel("A")),
    _rule("Fabric B uplinks are configured as port-channel",
          ["uplink_port_channels"], _uplink_port_channel("B")),
    _rule("Chassis power supplies are redundant",
          ["power_redundancy_policy"], _power_redundant),
    _rule("Associated service profiles use a user-acknowledged maintenance policy",
          ["maintenance_policies", "associated_service_profiles"], _maintenance_user_ack),
    _rule("vNIC templates are updating templates", ["vnic_templates"], _templates_updating("vnic_templates")),
    _rule("vHBA templates are updating templates", ["vhba_templates"], _templates_updating("vhba_templates")),
    _rule("No critical faults are present", ["faults"], _no_critical_faults),
)


def evaluate_rules(
    retained: Datasets,
    rules: Sequence[RuleDefinition] = RULES,
) -> List[RuleResult]:
    """Evaluate *rules* in order against the retained datasets of one report."""
    results: List[RuleResult] = []
    for rule in rules:
        missing = [name for name in rule.inputs if name not in retained]
        if missing:
            raise ConfigurationError(
                f"rule {rule.description!r} reads datasets not retained by the catalog: {', '.join(missing)}"
            )
        verdict = rule.evaluate({name: retained[name] for name in rule.inputs})
        _debug(f"{rule.description}: {verdict.status.value}")
        results.append(RuleResult(description=rule.description, inputs=list(rule.inputs), verdict=verdict))
    return results
