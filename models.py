# models.py
"""
Data models used by the key auditor.

- Keep simple, serializable dataclasses for audit output.
- PermissionSnapshot is the only input the rule engine ever sees.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

from config import SNAPSHOT_METADATA_FIELD


class Severity(str, Enum):
    NORMAL = "NORMAL"
    LOW_RISK_OFF = "LOW_RISK_OFF"
    MEDIUM_RISK = "MEDIUM_RISK"
    HIGH_RISK = "HIGH_RISK"


class RiskLevel(str, Enum):
    """Aggregate risk for one key. Members are declared in increasing order."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


@dataclass(frozen=True)
class PermissionSnapshot:
    """
    Point-in-time permission flags for one API key.

    Fields:
    - flags: permission name -> enabled, in the order the API returned them
    - create_time: key creation timestamp (ms), never classified

    Snapshots compare by value but are unhashable, like the mapping they wrap.
    """
    flags: Mapping[str, bool] = field(default_factory=dict)
    create_time: Optional[int] = None

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self):
        object.__setattr__(self, "flags", MappingProxyType(dict(self.flags)))

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PermissionSnapshot":
        """
        Build a snapshot from a raw apiRestrictions response.

        Values are coerced with truthiness; the API also returns
        timestamps (e.g. tradingAuthorityExpirationTime) next to booleans.
        """
        flags = {
            name: bool(value)
            for name, value in data.items()
            if name != SNAPSHOT_METADATA_FIELD
        }
        return cls(flags=flags, create_time=data.get(SNAPSHOT_METADATA_FIELD))

    def is_enabled(self, name: str) -> bool:
        # Missing flags count as disabled
        return self.flags.get(name, False)

    def __iter__(self) -> Iterator[str]:
        return iter(self.flags)

    def __len__(self) -> int:
        return len(self.flags)


@dataclass(frozen=True)
class PermissionStatus:
    """One classified permission, as shown in the audit table."""
    name: str
    enabled: bool
    severity: Severity

    @property
    def label(self) -> str:
        return "ON" if self.enabled else "OFF"


@dataclass(frozen=True)
class Recommendation:
    """
    A remediation suggestion tied to a specific flag condition.

    Fields:
    - rule_id: stable identifier (e.g. "KEY-WD-001")
    - title: short headline
    - reason: why the rule fired
    - risk: risk wording ("High. ...")
    - action: what the user should do
    """
    rule_id: str
    title: str
    reason: str
    risk: str
    action: str


@dataclass
class AuditResult:
    permissions: List[PermissionStatus]
    risk_level: RiskLevel
    recommendations: List[Recommendation]
    create_time: Optional[int] = None
