"""
Scan result aggregation for lockguard.

Buckets classified issues by severity and computes the summary counts
consumed by the CLI, the threshold checker and the JSON output.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..graph import DependencyGraph
from ..models import SEVERITY_ORDER, Classification, Issue, ScanMode, Severity, Verdict

REMOVAL_COMMANDS = {
    "npm": "npm uninstall",
    "pnpm": "pnpm remove",
    "yarn": "yarn remove",
}


@dataclass(frozen=True)
class PackageCounts:
    total: int = 0
    direct: int = 0
    transitive: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "direct": self.direct, "transitive": self.transitive}


@dataclass
class ScanResult:
    """Classified outcome of one scan invocation."""
    mode: ScanMode
    lock_file: Optional[str]
    counts: PackageCounts
    results: Dict[Severity, List[Issue]] = field(
        default_factory=lambda: {severity: [] for severity in SEVERITY_ORDER}
    )
    trusted: List[str] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    database: Optional[Dict[str, Any]] = None

    @property
    def issues(self) -> List[Issue]:
        """All issues, most severe first."""
        return [issue for severity in SEVERITY_ORDER for issue in self.results.get(severity, [])]

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def transitive_issues(self) -> int:
        return sum(1 for issue in self.issues if issue.is_transitive)

    def count(self, severity: Severity) -> int:
        return len(self.results.get(severity, []))

    def removal_command(self, manager: str = "npm") -> Optional[str]:
        """
        Suggest the command that removes every flagged package.

        Args:
            manager: ``npm``, ``pnpm`` or ``yarn``

        Returns:
            Command string, or None when nothing was flagged
        """
        if manager not in REMOVAL_COMMANDS:
            raise ValueError(f"Unknown package manager: {manager}")
        names = list(dict.fromkeys(issue.package for issue in self.issues))
        if not names:
            return None
        return f"{REMOVAL_COMMANDS[manager]} {' '.join(names)}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to the JSON output document."""
        data: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "scanMode": self.mode.value,
            "lockFile": self.lock_file,
            "packagesScanned": self.counts.to_dict(),
            "totalIssues": self.total_issues,
            "transitiveIssues": self.transitive_issues,
            "results": {
                severity.value: [issue.to_dict() for issue in self.results.get(severity, [])]
                for severity in SEVERITY_ORDER
            },
            "trusted": list(self.trusted),
            "ignored": list(self.ignored),
        }
        if self.database is not None:
            data["database"] = dict(self.database)
        return data


def aggregate(
    graph: DependencyGraph,
    classifications: Iterable[Classification],
    lock_file: Optional[str] = None,
    database: Optional[Dict[str, Any]] = None,
) -> ScanResult:
    """Bucket classifications into a ScanResult."""
    result = ScanResult(
        mode=graph.mode,
        lock_file=lock_file,
        counts=PackageCounts(
            total=graph.total,
            direct=graph.direct_count,
            transitive=graph.transitive_count,
        ),
        database=database,
    )

    for classification in classifications:
        if classification.verdict is Verdict.ISSUE:
            result.results[classification.issue.severity].append(classification.issue)
        elif classification.verdict is Verdict.TRUSTED:
            result.trusted.append(classification.node.name)
        elif classification.verdict is Verdict.IGNORED:
            result.ignored.append(classification.node.name)

    return result
