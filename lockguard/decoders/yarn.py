"""Decoder for the flat block dialect (``yarn.lock``).

An unindented header names one or more descriptors that resolved to the same
install; the indented block below it carries the resolved version::

    "@babel/code-frame@^7.0.0", "@babel/code-frame@^7.22.5":
      version "7.22.5"

Yarn 2+ writes ``version: 7.22.5`` and ``name@npm:range`` descriptors, and
adds a ``__metadata:`` block; both forms are accepted. Every alias in a header
gets the version from the first version line of its block. Chains are not
recorded by this dialect and are always empty.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from ..models import LockDialect, LockEntry
from .base import BaseLockDecoder, is_valid_name, split_descriptor, strip_quotes

logger = logging.getLogger(__name__)

WORKSPACE_PROTOCOL = "workspace:"


class _State(Enum):
    OUTSIDE_ENTRY = "outside_entry"
    BUFFERING_ALIAS_HEADER = "buffering_alias_header"
    ENTRY_COMMITTED = "entry_committed"


def parse_header(header: str) -> List[str]:
    """Return the package names declared by a header line."""
    names: List[str] = []
    for descriptor in header.rstrip(":").split(","):
        descriptor = strip_quotes(descriptor)
        if not descriptor:
            continue
        parsed = split_descriptor(descriptor)
        if parsed is None:
            continue
        name, requested = parsed
        if requested.startswith(WORKSPACE_PROTOCOL) or not is_valid_name(name):
            continue
        if name not in names:
            names.append(name)
    return names


def parse_version_line(stripped: str) -> Optional[str]:
    """Return the version from ``version "x"`` or ``version: x``."""
    if not stripped.startswith("version"):
        return None
    rest = stripped[len("version"):]
    if rest.startswith(":"):
        rest = rest[1:]
    elif not rest[:1].isspace():
        return None
    version = strip_quotes(rest)
    return version or None


class YarnLockDecoder(BaseLockDecoder):
    """State machine that buffers header aliases until their version line."""

    dialect = LockDialect.YARN

    def decode(self, content: str) -> Dict[str, LockEntry]:
        packages: Dict[str, LockEntry] = {}
        state = _State.OUTSIDE_ENTRY
        aliases: List[str] = []
        header_open = False
        entry_indent: Optional[int] = None

        for line in content.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue

            indent = len(line) - len(line.lstrip(" \t"))
            if indent == 0:
                if state is _State.BUFFERING_ALIAS_HEADER and header_open:
                    # header continued on the next line
                    aliases.extend(n for n in parse_header(stripped) if n not in aliases)
                else:
                    aliases = parse_header(stripped)
                    entry_indent = None
                header_open = not stripped.endswith(":")
                state = _State.BUFFERING_ALIAS_HEADER if aliases else _State.OUTSIDE_ENTRY
                continue

            header_open = False
            if state is not _State.BUFFERING_ALIAS_HEADER:
                continue

            if entry_indent is None:
                entry_indent = indent
            if indent != entry_indent:
                continue

            version = parse_version_line(stripped)
            if version is None:
                continue

            for name in aliases:
                self._record(packages, name, LockEntry(version=version))
            state = _State.ENTRY_COMMITTED

        if state is _State.BUFFERING_ALIAS_HEADER:
            logger.debug(f"yarn.lock: entry {aliases} ended without a version line")

        logger.info(f"yarn.lock: decoded {len(packages)} packages")
        return packages
