from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Severity(str, Enum):
    """Severity tiers, most urgent first."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Lower rank means more urgent."""
        return SEVERITY_ORDER.index(self)

    def at_least(self, threshold: "Severity") -> bool:
        """Return True if this severity is as urgent as ``threshold`` or more."""
        return self.rank <= threshold.rank


SEVERITY_ORDER = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)


class ScanMode(str, Enum):
    """Whether transitive dependencies from a lock artifact were scanned."""
    DIRECT = "direct"
    DEEP = "deep"


class Verdict(str, Enum):
    """Outcome of classifying a single dependency."""
    ISSUE = "issue"
    IGNORED = "ignored"
    TRUSTED = "trusted"
    CLEAN = "clean"


class LockDialect(str, Enum):
    """Supported lock artifact dialects, keyed by their canonical file name."""
    PNPM = "pnpm-lock.yaml"
    NPM = "package-lock.json"
    YARN = "yarn.lock"

    @property
    def manager(self) -> str:
        return {"pnpm-lock.yaml": "pnpm", "package-lock.json": "npm", "yarn.lock": "yarn"}[self.value]


@dataclass(frozen=True)
class LockEntry:
    """A package recovered from a lock artifact."""
    version: str
    chain: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DependencyNode:
    """A unique package in the merged dependency graph."""
    name: str
    resolved_version: str
    is_direct: bool
    chain: Tuple[str, ...] = ()

    @property
    def is_transitive(self) -> bool:
        return not self.is_direct


@dataclass(frozen=True)
class Issue:
    """A classified threat for one dependency."""
    package: str
    version: str
    severity: Severity
    category: str
    reason: str
    action: str
    is_direct: bool
    is_transitive: bool
    chain: Tuple[str, ...] = ()
    campaign: Optional[str] = None
    affected_versions: Optional[Tuple[str, ...]] = None
    safe_version: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert issue to a dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "package": self.package,
            "version": self.version,
            "severity": self.severity.value,
            "type": self.category,
            "category": self.category,
            "reason": self.reason,
            "action": self.action,
            "isDirect": self.is_direct,
            "isTransitive": self.is_transitive,
            "dependencyChain": list(self.chain),
            "chain": list(self.chain),
            "safeVersion": self.safe_version,
        }
        if self.campaign is not None:
            data["campaign"] = self.campaign
        if self.affected_versions is not None:
            data["affectedVersions"] = list(self.affected_versions)
        return data


@dataclass(frozen=True)
class Classification:
    """Result of running the classifier over one node."""
    verdict: Verdict
    node: DependencyNode
    issue: Optional[Issue] = field(default=None)
