"""Abstract base class for lock artifact decoders."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from ..models import LockDialect, LockEntry

logger = logging.getLogger(__name__)

QUOTES = "\"'"


def strip_quotes(value: str) -> str:
    """Remove one layer of surrounding quotes and whitespace."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in QUOTES:
        return value[1:-1].strip()
    return value.strip(QUOTES).strip()


def is_valid_name(name: str) -> bool:
    """Return True for ``name`` or ``@scope/name``."""
    if name.startswith("@"):
        scope, _, rest = name.partition("/")
        return len(scope) > 1 and bool(rest) and "/" not in rest
    return bool(name) and "/" not in name


def split_descriptor(descriptor: str) -> Optional[Tuple[str, str]]:
    """Split ``name@version`` into its parts.

    A leading ``@`` belongs to the scope of the name, so the separator is the
    first ``@`` after position 0. The slash inside ``@scope/name`` is never a
    split point.

    Returns:
        ``(name, version)`` or None when the descriptor has no version part
    """
    start = 1 if descriptor.startswith("@") else 0
    if start and "/" not in descriptor:
        return None
    index = descriptor.find("@", start)
    if index <= 0:
        return None
    name, version = descriptor[:index], descriptor[index + 1:]
    if not name or not version:
        return None
    return name, version


class BaseLockDecoder(ABC):
    """Base class for lock artifact decoders.

    Every decoder is a pure function from raw text to a mapping of package
    name to :class:`LockEntry`. ``decode`` never raises for malformed input:
    unrecoverable entries are skipped and whatever could be recovered is
    returned, possibly empty.

    When a package name occurs more than once in one artifact (for example
    several installed major versions) the first occurrence wins.
    """

    dialect: LockDialect

    @abstractmethod
    def decode(self, content: str) -> Dict[str, LockEntry]:
        """Decode lock artifact text.

        Args:
            content: Raw text of the lock artifact

        Returns:
            Mapping of package name to resolved version and chain
        """
        pass

    def _record(self, packages: Dict[str, LockEntry], name: str, entry: LockEntry) -> bool:
        """Store ``entry`` unless ``name`` was already seen.

        Returns:
            True if the entry was stored
        """
        if name in packages:
            if packages[name].version != entry.version:
                logger.debug(
                    f"{self.dialect.value}: keeping {name}@{packages[name].version}, "
                    f"ignoring duplicate {name}@{entry.version}"
                )
            return False
        packages[name] = entry
        return True
