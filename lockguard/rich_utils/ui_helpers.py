import os
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lockguard.core.statistics import ScanResult
from lockguard.models import SEVERITY_ORDER, ScanMode, Severity
from lockguard.threshold_checker import ScanStatus, ThresholdResult

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "yellow",
    Severity.MEDIUM: "magenta",
    Severity.LOW: "cyan",
}

SEVERITY_ICONS = {
    Severity.CRITICAL: "❌",
    Severity.HIGH: "⚠️",
    Severity.MEDIUM: "⚡",
    Severity.LOW: "ℹ️",
}


def is_ci_environment():
    return (
        os.getenv('CI') is not None or
        os.getenv('GITHUB_ACTIONS') is not None or
        not sys.stdout.isatty()
    )


def get_console(stderr: bool = False) -> Console:
    """Detect environment and create console, on stderr when requested."""
    if is_ci_environment():
        # CI/automated environment - no colors, no interactive elements
        return Console(force_terminal=False, no_color=True, stderr=stderr)
    # Interactive terminal - full Rich capabilities
    return Console(stderr=stderr)


def render_database_summary(console: Console, summary: dict) -> None:
    console.print(
        f"📚 Threat database v{summary['version']} (updated {summary['lastUpdated']}): "
        f"{summary['knownMalicious']} known malicious packages, {summary['campaigns']} campaigns",
        style="dim",
    )


def render_scan_result(
    console: Console,
    result: ScanResult,
    threshold: Optional[ThresholdResult] = None,
    manager: str = "npm",
    verbose: bool = False,
) -> None:
    """Print a scan result as a summary line, a per-issue table and the verdict."""
    if verbose and result.database:
        render_database_summary(console, result.database)

    mode_label = "deep scan" if result.mode is ScanMode.DEEP else "direct dependencies only"
    lock_label = f" from {result.lock_file}" if result.lock_file else ""
    console.print(
        f"🔍 Scanned {result.counts.total} packages ({result.counts.direct} direct, "
        f"{result.counts.transitive} transitive) - {mode_label}{lock_label}",
        style="cyan",
    )

    if result.total_issues:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Severity", justify="center", width=10)
        table.add_column("Package", no_wrap=False)
        table.add_column("Category")
        table.add_column("Reason", no_wrap=False)
        table.add_column("Action", no_wrap=False)

        for severity in SEVERITY_ORDER:
            for issue in result.results.get(severity, []):
                package = f"{escape(issue.package)}@{escape(issue.version)}"
                if issue.is_transitive:
                    via = " → ".join(issue.chain) if issue.chain else "unknown chain"
                    package += f"\n[dim]transitive via {escape(via)}[/dim]"
                reason = escape(issue.reason)
                if issue.affected_versions and not issue.safe_version:
                    reason += f"\n[dim]Affected versions: {escape(', '.join(issue.affected_versions))}[/dim]"
                table.add_row(
                    f"{SEVERITY_ICONS[severity]} {severity.value.upper()}",
                    package,
                    escape(issue.category),
                    reason,
                    escape(issue.action),
                    style=SEVERITY_STYLES[severity],
                )
        console.print(table)

        counts = ", ".join(f"{severity.value}: {result.count(severity)}" for severity in SEVERITY_ORDER)
        console.print(f"Issues found: {result.total_issues} ({counts}), {result.transitive_issues} transitive")

        command = result.removal_command(manager)
        if command:
            console.print(f"💡 To remove flagged packages: {escape(command)}", style="dim")

    if verbose and result.trusted:
        console.print(f"Trusted: {escape(', '.join(result.trusted))}", style="dim")
    if result.ignored:
        console.print(f"Ignored: {escape(', '.join(result.ignored))}", style="dim")

    if threshold is None:
        return
    if threshold.status is ScanStatus.PASS:
        console.print(
            f"✅ No issues at or above {threshold.severity_threshold.value} severity", style="bold green"
        )
    else:
        console.print(f"❌ Scan failed: {threshold.failure_reason}", style="bold red")
