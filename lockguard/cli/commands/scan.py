"""
Scan command implementation.

Thin wrapper around ScannerService that handles CLI argument parsing,
configuration, rendering and the exit code.
"""
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from lockguard.config_validator import ConfigValidator
from lockguard.core.config_manager import ConfigManager
from lockguard.core.scanner import ScannerService, ScanOptions
from lockguard.ecosystems.npm import find_project_root
from lockguard.models import Severity
from lockguard.rich_utils.ui_helpers import get_console, render_scan_result
from lockguard.threshold_checker import ScanStatus, ThresholdChecker, ThresholdConfig
from lockguard.utils.exceptions import ConfigurationError


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def scan_command(
    project_dir: str = typer.Argument(".", help="Project directory to scan"),
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Path to config YAML"),
    deep: Optional[bool] = typer.Option(None, "--deep/--direct", help="Also scan transitive dependencies from the lock file"),
    lock_file: Optional[str] = typer.Option(None, "--lock-file", help="Explicit lock file (implies --deep)"),
    database: Optional[str] = typer.Option(None, "--database", help="Path to the threat database JSON"),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", help="Package name or '@scope/*' to skip (repeatable)"),
    severity: Optional[str] = typer.Option(None, "-s", "--severity", help="Lowest severity that fails the scan"),
    strict: bool = typer.Option(False, "--strict", help="Fail on issues of any severity"),
    output: Optional[str] = typer.Option(None, "-o", "--output", help="Write the JSON result to this file"),
    json_output: bool = typer.Option(False, "--json", help="Print the JSON result instead of the table"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show debug logging and database details"),
):
    """Scan a project's dependencies for known malicious packages."""
    configure_logging(verbose)
    # Keep stdout clean for the JSON document
    console = get_console(stderr=json_output)
    threshold_checker = ThresholdChecker()

    try:
        config_manager = ConfigManager()
        root = find_project_root(project_dir)
        config = config_manager.discover_and_load_config(config_path, str(root))
        validator = ConfigValidator()
        errors = validator.validate_config(config)
        if errors:
            raise ConfigurationError("Invalid configuration: " + "; ".join(errors), source=config_path)

        config = config_manager.merge_config_and_args(
            config,
            deep=deep,
            severity_threshold="low" if strict else severity,
            lock_file=lock_file,
            database=database,
            ignore=ignore,
            json_file=output,
        )

        errors = validator.validate_config(config)
        if errors:
            raise ConfigurationError("Invalid options: " + "; ".join(errors))

        scan_config = config["scan"]
        threshold_checker = ThresholdChecker(
            ThresholdConfig(severity_threshold=Severity((scan_config.get("severity_threshold") or "high").lower()))
        )
        options = ScanOptions(
            deep=bool(scan_config.get("deep")),
            lock_file=Path(scan_config["lock_file"]) if scan_config.get("lock_file") else None,
            database_path=Path(config["database"]["path"]) if config["database"].get("path") else None,
            ignore_patterns=tuple(config.get("ignore_patterns") or ()),
        )

        # Delegate to service layer
        scanner_service = ScannerService()
        result = scanner_service.scan(root, options)
    except ConfigurationError as e:
        threshold_result = threshold_checker.configuration_error(str(e))
        console.print(f"❌ Configuration error: {e}", style="bold red", markup=False)
        sys.exit(threshold_result.exit_code)

    threshold_result = threshold_checker.check_thresholds(result)
    manager = scanner_service.last_dialect.manager if scanner_service.last_dialect else "npm"

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        render_scan_result(console, result, threshold_result, manager=manager, verbose=verbose)

    json_file = config["output"].get("json_file")
    if json_file:
        try:
            scanner_service.save_result(result, json_file)
        except ConfigurationError as e:
            console.print(f"❌ Configuration error: {e}", style="bold red", markup=False)
            sys.exit(threshold_checker.configuration_error(str(e)).exit_code)

    # Exit with appropriate code
    if threshold_result.status is not ScanStatus.PASS:
        sys.exit(threshold_result.exit_code)
