"""Decoder for the nested tree dialect (``package-lock.json``).

lockfileVersion 2 and 3 key every installed package by its ``node_modules``
path, which embeds the whole ancestry::

    "node_modules/@scope/a/node_modules/b"  ->  name "b", chain ["@scope/a"]

lockfileVersion 1 nests ``dependencies`` objects instead; the chain is
accumulated while descending.

Both shapes are visited shallowest first, so for a name installed several
times the hoisted copy is the one that is kept.
"""

import json
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from ..models import LockDialect, LockEntry
from ..utils.exceptions import DecodeError
from .base import BaseLockDecoder

logger = logging.getLogger(__name__)

MODULES_MARKER = "node_modules"
UNKNOWN_VERSION = "unknown"


def split_install_path(pkg_path: str) -> Optional[List[str]]:
    """Split a ``node_modules`` install path into package names.

    Segments before the first marker (a workspace directory) are the project
    root and are dropped.

    Returns:
        Package names from outermost to the installed package itself, or None
        if the path does not name a package
    """
    segments = pkg_path.split("/")
    names: List[str] = []
    index = 0
    while index < len(segments):
        segment = segments[index]
        if segment != MODULES_MARKER:
            if names:
                return None
            index += 1
            continue

        index += 1
        if index >= len(segments) or not segments[index]:
            return None
        segment = segments[index]
        if segment.startswith("@"):
            if index + 1 >= len(segments) or not segments[index + 1]:
                return None
            names.append(f"{segment}/{segments[index + 1]}")
            index += 2
        else:
            names.append(segment)
            index += 1

    return names or None


def _version_of(info: Dict[str, Any]) -> str:
    version = info.get("version")
    return version if isinstance(version, str) and version else UNKNOWN_VERSION


class NpmLockDecoder(BaseLockDecoder):
    """Decoder for npm lock files and shrinkwraps."""

    dialect = LockDialect.NPM

    def decode(self, content: str) -> Dict[str, LockEntry]:
        packages: Dict[str, LockEntry] = {}

        try:
            data = self._load(content)
        except DecodeError as e:
            logger.warning(f"Could not parse package-lock.json: {e}")
            return packages

        tree = data.get("packages")
        if isinstance(tree, dict) and tree:
            self._decode_install_paths(tree, packages)
        elif isinstance(data.get("dependencies"), dict):
            self._decode_nested(data["dependencies"], packages)

        logger.info(f"package-lock.json: decoded {len(packages)} packages")
        return packages

    def _load(self, content: str) -> Dict[str, Any]:
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except ValueError as e:
            raise DecodeError("Invalid JSON in lock file", source="package-lock.json", original_exception=e)
        if not isinstance(data, dict):
            raise DecodeError("Lock file root must be a JSON object", source="package-lock.json")
        return data

    def _decode_install_paths(self, tree: Dict[str, Any], packages: Dict[str, LockEntry]) -> None:
        """Decode the lockfileVersion 2/3 ``packages`` map."""
        installs: List[Tuple[List[str], Dict[str, Any]]] = []
        for pkg_path, info in tree.items():
            # "" is the project root
            if not pkg_path or not isinstance(info, dict):
                continue
            names = split_install_path(pkg_path)
            if names is None:
                logger.debug(f"package-lock.json: skipping non-package path {pkg_path!r}")
                continue
            installs.append((names, info))

        installs.sort(key=lambda install: len(install[0]))
        for names, info in installs:
            entry = LockEntry(version=_version_of(info), chain=tuple(names[:-1]))
            self._record(packages, names[-1], entry)

    def _decode_nested(self, dependencies: Dict[str, Any], packages: Dict[str, LockEntry]) -> None:
        """Decode the lockfileVersion 1 nested ``dependencies`` tree."""
        pending: Deque[Tuple[Dict[str, Any], Tuple[str, ...]]] = deque([(dependencies, ())])
        while pending:
            level, chain = pending.popleft()
            for name, info in level.items():
                if not isinstance(info, dict):
                    logger.debug(f"package-lock.json: skipping malformed entry {name!r}")
                    continue
                self._record(packages, name, LockEntry(version=_version_of(info), chain=chain))
                nested = info.get("dependencies")
                if isinstance(nested, dict):
                    pending.append((nested, chain + (name,)))
