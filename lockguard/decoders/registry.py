"""
Decoder registry for lock artifact dialects.

Selects a decoder by file name, falling back to sniffing the content when the
file name is not one of the canonical lock file names.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..models import LockDialect, LockEntry
from .base import BaseLockDecoder
from .npm import NpmLockDecoder
from .pnpm import PnpmLockDecoder
from .yarn import YarnLockDecoder

logger = logging.getLogger(__name__)


# Registry mapping dialects to decoder classes
LOCK_DECODERS = {
    LockDialect.PNPM: PnpmLockDecoder,
    LockDialect.NPM: NpmLockDecoder,
    LockDialect.YARN: YarnLockDecoder,
}

LOCK_FILE_NAMES = {
    "pnpm-lock.yaml": LockDialect.PNPM,
    "package-lock.json": LockDialect.NPM,
    "npm-shrinkwrap.json": LockDialect.NPM,
    "yarn.lock": LockDialect.YARN,
}


def get_decoder(dialect: LockDialect) -> BaseLockDecoder:
    """
    Get a decoder for the specified dialect.

    Args:
        dialect: Lock artifact dialect

    Returns:
        Decoder instance
    """
    return LOCK_DECODERS[dialect]()


def sniff_dialect(content: str) -> Optional[LockDialect]:
    """
    Guess the dialect of a lock artifact from its content.

    - a JSON object with ``lockfileVersion`` or a ``packages`` map is an npm
      lock; any other JSON object (e.g. a package.json) is not a lock artifact
    - a ``# yarn lockfile`` leading comment, a ``__metadata:`` block or
      ``version "x"`` lines mean yarn
    - a root ``packages:`` or ``lockfileVersion:`` line means pnpm
    """
    text = content.lstrip("\ufeff").lstrip()
    if not text:
        return None

    if text.startswith("{"):
        try:
            data = json.loads(text)
        except ValueError:
            return None
        if isinstance(data, dict) and ("lockfileVersion" in data or isinstance(data.get("packages"), dict)):
            return LockDialect.NPM
        return None

    lines = text.splitlines()
    if "yarn lockfile" in lines[0].lower():
        return LockDialect.YARN

    root_lines = {line.rstrip() for line in lines if line and not line[0].isspace()}
    if "__metadata:" in root_lines:
        return LockDialect.YARN
    if "packages:" in root_lines or any(line.startswith("lockfileVersion:") for line in root_lines):
        return LockDialect.PNPM
    if any(line.startswith('  version "') for line in lines):
        return LockDialect.YARN
    return None


def detect_dialect(filename: Optional[str], content: str) -> Optional[LockDialect]:
    """Detect the dialect by file name, falling back to content sniffing."""
    if filename:
        dialect = LOCK_FILE_NAMES.get(Path(filename).name)
        if dialect is not None:
            return dialect
    return sniff_dialect(content)


def decode_lock_text(content: str, filename: Optional[str] = None) -> Tuple[Optional[LockDialect], Dict[str, LockEntry]]:
    """
    Decode lock artifact text of any supported dialect.

    Returns:
        ``(dialect, entries)``; dialect is None and entries empty when the
        content is not a recognisable lock artifact
    """
    dialect = detect_dialect(filename, content)
    if dialect is None:
        logger.warning(f"Unable to determine lock file format for {filename or '<text>'}")
        return None, {}
    return dialect, get_decoder(dialect).decode(content)


def decode_lock_file(path: Path) -> Tuple[Optional[LockDialect], Dict[str, LockEntry]]:
    """
    Read and decode a lock artifact from disk.

    An unreadable file is treated like an undecodable one: a warning is
    logged and no entries are returned.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return None, {}
    return decode_lock_text(content, str(path))
