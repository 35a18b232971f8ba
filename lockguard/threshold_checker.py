"""
Severity threshold checker for lockguard.

Derives the three-valued scan status and the matching process exit code
from a scan result, so CI pipelines can fail builds on flagged packages.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .core.statistics import ScanResult
from .models import SEVERITY_ORDER, Severity


class ScanStatus(str, Enum):
    PASS = "pass"
    ISSUES_FOUND = "issues_found"
    CONFIGURATION_ERROR = "configuration_error"

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self]


EXIT_CODES = {
    ScanStatus.PASS: 0,
    ScanStatus.ISSUES_FOUND: 1,
    ScanStatus.CONFIGURATION_ERROR: 2,
}


@dataclass
class ThresholdConfig:
    """Configuration for severity threshold checking."""
    severity_threshold: Severity = Severity.HIGH


@dataclass
class SeverityCounts:
    """Count of issues by severity level."""
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


@dataclass
class ThresholdResult:
    """Result of threshold checking."""
    status: ScanStatus
    severity_threshold: Severity
    issue_counts: SeverityCounts
    failing_issues: int = 0
    failure_reason: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    @property
    def should_fail_build(self) -> bool:
        return self.status is not ScanStatus.PASS


class ThresholdChecker:
    """
    Severity threshold checker for build failure decisions.

    A scan fails when it holds at least one issue at or above the configured
    severity threshold. Trusted and ignored packages never count.
    """

    def __init__(self, config: Optional[ThresholdConfig] = None):
        """
        Initialize threshold checker with configuration.

        Args:
            config: Threshold configuration; defaults to failing on high and above
        """
        self.config = config or ThresholdConfig()
        self.logger = logging.getLogger(__name__)

    def check_thresholds(self, result: ScanResult) -> ThresholdResult:
        """
        Check a scan result against the severity threshold.

        Args:
            result: Aggregated scan result

        Returns:
            ThresholdResult with status, exit code and counts
        """
        threshold = self.config.severity_threshold
        counts = SeverityCounts(**{severity.value: result.count(severity) for severity in SEVERITY_ORDER})
        failing = sum(result.count(severity) for severity in SEVERITY_ORDER if severity.at_least(threshold))

        status = ScanStatus.ISSUES_FOUND if failing else ScanStatus.PASS
        failure_reason = None
        if failing:
            failure_reason = f"{failing} issue(s) at or above {threshold.value} severity"

        self.logger.info(
            f"Threshold check result: threshold={threshold.value}, failing={failing}, "
            f"critical={counts.critical}, high={counts.high}, medium={counts.medium}, low={counts.low}"
        )

        return ThresholdResult(
            status=status,
            severity_threshold=threshold,
            issue_counts=counts,
            failing_issues=failing,
            failure_reason=failure_reason,
        )

    def configuration_error(self, reason: str) -> ThresholdResult:
        """Result for a scan that could not run."""
        return ThresholdResult(
            status=ScanStatus.CONFIGURATION_ERROR,
            severity_threshold=self.config.severity_threshold,
            issue_counts=SeverityCounts(),
            failure_reason=reason,
        )

    def get_threshold_summary(self, result: ThresholdResult) -> Dict[str, Any]:
        """
        Generate a summary of threshold checking results for reporting.

        Args:
            result: ThresholdResult from check_thresholds()

        Returns:
            Dictionary with threshold summary data
        """
        return {
            "severity_threshold": result.severity_threshold.value,
            "issue_counts": {
                "critical": result.issue_counts.critical,
                "high": result.issue_counts.high,
                "medium": result.issue_counts.medium,
                "low": result.issue_counts.low,
            },
            "decision": {
                "status": result.status.value,
                "exit_code": result.exit_code,
                "failing_issues": result.failing_issues,
                "failure_reason": result.failure_reason,
            },
        }
