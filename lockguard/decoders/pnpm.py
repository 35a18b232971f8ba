"""Decoder for the indented block dialect (``pnpm-lock.yaml``).

Entries live under the top-level ``packages:`` section. Newer lock files add
a ``snapshots:`` section keyed the same way; it is read as a best-effort
fallback and only contributes names the ``packages:`` section did not have.
Neither section records lineage in a form that can be recovered line by line,
so every chain is empty.

Entry keys seen in the wild::

    /left-pad/1.3.0:                     # lockfile v5
    /left-pad/1.3.0_react@17.0.2:        # lockfile v5 with peer suffix
    /left-pad@1.3.0:                     # lockfile v6
    /@babel/core@7.22.0(supports-color@8.1.1):
    '@babel/core@7.22.0':                # lockfile v9
"""

import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from ..models import LockDialect, LockEntry
from .base import BaseLockDecoder, is_valid_name, split_descriptor, strip_quotes

logger = logging.getLogger(__name__)

ENTRY_SECTIONS = ("packages", "snapshots")


class _State(Enum):
    OUTSIDE_SECTION = "outside_section"
    IN_SECTION = "in_section"


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _entry_key(stripped: str) -> Optional[str]:
    """Return the mapping key of an entry line, or None if it is not one."""
    if stripped[0] in "\"'":
        closing = stripped.find(stripped[0], 1)
        if closing < 0 or not stripped[closing + 1:].startswith(":"):
            return None
        return stripped[1:closing]
    if ": " in stripped:
        return stripped.split(": ", 1)[0]
    if stripped.endswith(":"):
        return stripped[:-1]
    return None


def parse_entry_key(key: str) -> Optional[Tuple[str, str]]:
    """Extract ``(name, version)`` from a ``packages:`` entry key."""
    key = strip_quotes(key)
    legacy = key.startswith("/")
    key = key.lstrip("/")

    peer_start = key.find("(")
    if peer_start > 0:
        key = key[:peer_start]

    parsed = split_descriptor(key)
    if parsed and is_valid_name(parsed[0]):
        return parsed

    if not legacy:
        return None

    # lockfile v5: /name/version or /@scope/name/version
    parts = key.split("/")
    name_length = 2 if key.startswith("@") else 1
    if len(parts) <= name_length:
        return None
    name = "/".join(parts[:name_length])
    version = "/".join(parts[name_length:]).split("_", 1)[0]
    if not is_valid_name(name) or not version:
        return None
    return name, version


class PnpmLockDecoder(BaseLockDecoder):
    """State machine over the lines of a pnpm lock file."""

    dialect = LockDialect.PNPM

    def decode(self, content: str) -> Dict[str, LockEntry]:
        packages: Dict[str, LockEntry] = {}
        state = _State.OUTSIDE_SECTION
        entry_indent: Optional[int] = None
        skipped = 0

        for line in content.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue

            indent = _indent_of(line)
            if indent == 0:
                if stripped.endswith(":") and stripped[:-1] in ENTRY_SECTIONS:
                    state = _State.IN_SECTION
                    entry_indent = None
                else:
                    state = _State.OUTSIDE_SECTION
                continue

            if state is _State.OUTSIDE_SECTION:
                continue

            if entry_indent is None:
                entry_indent = indent
            if indent != entry_indent:
                # entry properties (resolution, dependencies, ...)
                continue

            key = _entry_key(stripped)
            parsed = parse_entry_key(key) if key else None
            if parsed is None:
                skipped += 1
                logger.debug(f"pnpm-lock.yaml: skipping unrecognised entry {stripped!r}")
                continue

            name, version = parsed
            self._record(packages, name, LockEntry(version=version))

        logger.info(f"pnpm-lock.yaml: decoded {len(packages)} packages ({skipped} entries skipped)")
        return packages
