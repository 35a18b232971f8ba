"""
Scanner service implementation for lockguard.

Runs one isolated scan of one project: read the manifest, optionally decode
the lock file, build the dependency graph, classify every node and aggregate
the result. All inputs arrive through ScanOptions; nothing is read from the
environment.
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

from lockguard.classify import classify_graph
from lockguard.decoders import decode_lock_file
from lockguard.ecosystems.npm import find_lock_file, find_project_root, read_manifest
from lockguard.graph import build_dependency_graph
from lockguard.models import LockDialect, LockEntry, ScanMode
from lockguard.patterns import compile_patterns
from lockguard.threat_db import ThreatDatabase, find_database, load_database
from lockguard.utils.exceptions import ConfigurationError

from lockguard.core.statistics import ScanResult, aggregate


@dataclass
class ScanOptions:
    """Explicit inputs for one scan invocation."""
    deep: bool = False
    lock_file: Optional[Path] = None
    database_path: Optional[Path] = None
    database: Optional[ThreatDatabase] = None
    ignore_patterns: Sequence[str] = field(default_factory=tuple)


class ScannerService:
    """Concrete implementation of the scan pipeline."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.last_dialect: Optional[LockDialect] = None

    def scan(self, project_dir: Union[str, Path] = ".", options: Optional[ScanOptions] = None) -> ScanResult:
        """
        Scan one project.

        Args:
            project_dir: Directory to scan; the nearest ancestor holding a
                package.json is used as the project root
            options: Scan inputs; defaults to a direct scan

        Returns:
            Aggregated ScanResult

        Raises:
            ConfigurationError: if the manifest or threat database cannot be loaded
        """
        options = options or ScanOptions()
        root = find_project_root(project_dir)
        self.logger.info(f"Scanning project at {root}")

        declared = read_manifest(root)
        database = self.load_threat_database(root, options)
        ignore_patterns = compile_patterns(options.ignore_patterns, source="ignore patterns")

        lock_path, entries = self.read_lock_entries(root, options)
        graph = build_dependency_graph(declared, entries)

        classifications = classify_graph(graph.nodes.values(), database, ignore_patterns)
        lock_name = lock_path.name if lock_path is not None and graph.mode is ScanMode.DEEP else None
        result = aggregate(graph, classifications, lock_file=lock_name, database=database.summary())

        self.logger.info(
            f"Scan complete: {result.counts.total} packages scanned, {result.total_issues} issues "
            f"({result.transitive_issues} transitive)"
        )
        return result

    def load_threat_database(self, project_root: Path, options: ScanOptions) -> ThreatDatabase:
        """Use the injected database, the configured path, or discover one."""
        if options.database is not None:
            return options.database

        path = options.database_path or find_database(project_root)
        if path is None:
            raise ConfigurationError(
                "Threat database not found",
                source=str(project_root),
                suggested_action="Add security/compromised-packages.json or pass --database",
            )
        return load_database(Path(path))

    def read_lock_entries(self, project_root: Path, options: ScanOptions) -> Tuple[Optional[Path], Optional[Dict[str, LockEntry]]]:
        """
        Decode the lock file for a deep scan.

        An explicit lock file implies a deep scan. Returns ``(path, None)``
        when the scan falls back to direct mode.
        """
        self.last_dialect = None
        if not options.deep and options.lock_file is None:
            return None, None

        lock_path = Path(options.lock_file) if options.lock_file is not None else find_lock_file(project_root)
        if lock_path is None:
            self.logger.warning("Deep scan requested but no lock file found, scanning direct dependencies only")
            return None, None
        if not lock_path.is_file():
            self.logger.warning(f"Lock file {lock_path} not found, scanning direct dependencies only")
            return lock_path, None

        dialect, entries = decode_lock_file(lock_path)
        if not entries:
            self.logger.warning(f"No packages decoded from {lock_path}, scanning direct dependencies only")
            return lock_path, None

        self.last_dialect = dialect
        self.logger.info(f"Decoded {len(entries)} packages from {lock_path.name}")
        return lock_path, entries

    def save_result(self, result: ScanResult, path: Union[str, Path]) -> None:
        """
        Write the JSON scan result.

        Raises:
            ConfigurationError: if the file cannot be written
        """
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(result.to_dict(), f, indent=2)
        except OSError as e:
            raise ConfigurationError(
                "Could not write scan result",
                source=str(path),
                original_exception=e,
                suggested_action="Check that the output directory exists and is writable",
            ) from e
        self.logger.info(f"Scan result written to {path}")