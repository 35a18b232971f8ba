"""Utilities for reading NPM dependency manifests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from ...utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"

# Merge order; a name declared in a later section overwrites the earlier range.
DEPENDENCY_SECTIONS = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)

# Lock files in discovery precedence order.
LOCK_FILE_PRECEDENCE = ("pnpm-lock.yaml", "package-lock.json", "yarn.lock")


def read_manifest(path: Union[str, Path] = ".") -> Dict[str, str]:
    """Read a ``package.json`` manifest and return its declared dependencies.

    Parameters
    ----------
    path:
        Directory containing the ``package.json`` file, or the manifest itself.

    Returns
    -------
    dict
        Mapping of package name to declared version range, with the four
        dependency sections merged in ``DEPENDENCY_SECTIONS`` order.

    Raises
    ------
    ConfigurationError
        If the manifest is missing, unreadable or not a JSON object.
    """

    manifest_path = Path(path)
    if manifest_path.is_dir():
        manifest_path = manifest_path / MANIFEST_NAME
    source = str(manifest_path)

    if not manifest_path.is_file():
        raise ConfigurationError(
            "No package.json found",
            source=source,
            suggested_action="Run the scan from an npm project directory",
        )

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError("Could not read package.json", source=source, original_exception=e)
    except ValueError as e:
        raise ConfigurationError("package.json is not valid JSON", source=source, original_exception=e)

    if not isinstance(data, dict):
        raise ConfigurationError("package.json must contain a JSON object", source=source)

    declared: Dict[str, str] = {}
    for section in DEPENDENCY_SECTIONS:
        entries = data.get(section) or {}
        if not isinstance(entries, dict):
            logger.warning(f"Ignoring '{section}' in {source}: expected an object")
            continue
        for name, spec in entries.items():
            if not isinstance(spec, str):
                logger.warning(f"Ignoring {name} in '{section}': version range is not a string")
                continue
            declared[name] = spec

    logger.debug(f"Read {len(declared)} declared dependencies from {source}")
    return declared


def find_project_root(start: Union[str, Path] = ".") -> Path:
    """Return the nearest directory at or above ``start`` holding a ``package.json``.

    Falls back to ``start`` itself when no ancestor has a manifest.
    """
    start_path = Path(start).resolve()
    for candidate in (start_path, *start_path.parents):
        if (candidate / MANIFEST_NAME).is_file():
            return candidate
    return start_path


def find_lock_file(project_root: Union[str, Path]) -> Optional[Path]:
    """Return the first lock file present in ``project_root``, if any."""
    root = Path(project_root)
    for name in LOCK_FILE_PRECEDENCE:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None
