# keyaudit/rules.py
"""
Permission classification and recommendation rules.

- Pure functions over a PermissionSnapshot; no I/O, no state between calls.
- classify() tags every flag with a Severity and reduces them to a RiskLevel.
- recommend() walks a fixed, ordered rule table and returns the entries whose
  predicate holds.
- IP restriction and read-only flags only produce recommendations; they never
  change the aggregate risk level.
"""

from typing import Callable, List, NamedTuple, Tuple

from models import (
    AuditResult,
    PermissionSnapshot,
    PermissionStatus,
    Recommendation,
    RiskLevel,
    Severity,
)

ENABLE_WITHDRAWALS = "enableWithdrawals"
ENABLE_FUTURES = "enableFutures"
ENABLE_PORTFOLIO_MARGIN = "enablePortfolioMarginTrading"
ENABLE_READING = "enableReading"
IP_RESTRICT = "ipRestrict"

# Severity of a permission when it is enabled. Anything not listed is NORMAL.
ENABLED_SEVERITY = {
    ENABLE_WITHDRAWALS: Severity.HIGH_RISK,
    ENABLE_FUTURES: Severity.MEDIUM_RISK,
    ENABLE_PORTFOLIO_MARGIN: Severity.MEDIUM_RISK,
}

# Aggregate level each severity raises the key to, if any
_SEVERITY_LEVEL = {
    Severity.HIGH_RISK: RiskLevel.HIGH,
    Severity.MEDIUM_RISK: RiskLevel.MEDIUM,
}

# --- Classification -------------------------------------------------------

def severity_for(name: str, enabled: bool) -> Severity:
    """
    Return the severity of a single permission flag.
    Disabled permissions are informational and never raise risk.
    """
    if not enabled:
        return Severity.LOW_RISK_OFF
    return ENABLED_SEVERITY.get(name, Severity.NORMAL)

def raise_level(current: RiskLevel, severity: Severity) -> RiskLevel:
    """
    Monotone step of the aggregate reduction: the level only ever goes up.
    """
    candidate = _SEVERITY_LEVEL.get(severity)
    if candidate is None or candidate.rank <= current.rank:
        return current
    return candidate

def classify(snapshot: PermissionSnapshot) -> Tuple[List[PermissionStatus], RiskLevel]:
    """
    Classify every permission in snapshot order and compute the aggregate level.
    """
    statuses: List[PermissionStatus] = []
    level = RiskLevel.LOW
    for name, enabled in snapshot.flags.items():
        severity = severity_for(name, enabled)
        statuses.append(PermissionStatus(name=name, enabled=enabled, severity=severity))
        level = raise_level(level, severity)
    return statuses, level

# --- Recommendations ------------------------------------------------------

class RecommendationRule(NamedTuple):
    applies: Callable[[PermissionSnapshot], bool]
    entry: Recommendation


# Emission order is the order of this tuple.
RECOMMENDATION_RULES: Tuple[RecommendationRule, ...] = (
    RecommendationRule(
        applies=lambda s: s.is_enabled(ENABLE_WITHDRAWALS),
        entry=Recommendation(
            rule_id="KEY-WD-001",
            title="Disable Withdrawals immediately",
            reason="Your API key can move funds out of your account.",
            risk="High. If your key is compromised, funds can be stolen.",
            action="Only enable for trusted environments or temporarily, then disable.",
        ),
    ),
    RecommendationRule(
        applies=lambda s: not s.is_enabled(IP_RESTRICT),
        entry=Recommendation(
            rule_id="KEY-IP-001",
            title="Enable IP whitelist",
            reason="Your API key is currently unrestricted by IP.",
            risk="Medium-High. Anyone with your key can access it from any IP.",
            action="Add your trusted IP(s) to Binance API whitelist to prevent misuse.",
        ),
    ),
    RecommendationRule(
        applies=lambda s: not s.is_enabled(ENABLE_READING),
        entry=Recommendation(
            rule_id="KEY-READ-001",
            title="Enable Read-only access for non-trading purposes",
            reason="Some tools or scripts may need read-only access to check balances or positions.",
            risk="Low. No trading or withdrawals, only data access.",
            action=(
                "Enable read-only instead of full trading permissions "
                "for monitoring or auditing tools."
            ),
        ),
    ),
    RecommendationRule(
        applies=lambda s: s.is_enabled(ENABLE_FUTURES),
        entry=Recommendation(
            rule_id="KEY-FUT-001",
            title="Futures trading enabled",
            reason="Your API key can trade on Binance Futures.",
            risk="High. Leveraged trading can cause large losses if misused.",
            action="Only enable for automated trading bots you fully trust.",
        ),
    ),
    RecommendationRule(
        applies=lambda s: s.is_enabled(ENABLE_PORTFOLIO_MARGIN),
        entry=Recommendation(
            rule_id="KEY-PM-001",
            title="Portfolio Margin enabled",
            reason="Key can access margin trading features.",
            risk="High. Positions can be liquidated quickly if mishandled.",
            action="Only use in secure, trusted environment.",
        ),
    ),
)

def recommend(snapshot: PermissionSnapshot) -> List[Recommendation]:
    """
    Return the recommendations that apply to this snapshot, in rule order.
    Rules are independent: one firing never suppresses another.
    """
    return [rule.entry for rule in RECOMMENDATION_RULES if rule.applies(snapshot)]

# --- High-level audit -----------------------------------------------------

def audit_snapshot(snapshot: PermissionSnapshot) -> AuditResult:
    """
    Run both rule sets against one snapshot and bundle the output for rendering.
    """
    permissions, level = classify(snapshot)
    return AuditResult(
        permissions=permissions,
        risk_level=level,
        recommendations=recommend(snapshot),
        create_time=snapshot.create_time,
    )
