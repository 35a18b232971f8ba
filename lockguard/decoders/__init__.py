"""
Lock artifact decoders.

One decoder per dialect, each turning raw lock file text into a mapping of
package name to resolved version and introduction chain.
"""

from .base import BaseLockDecoder
from .npm import NpmLockDecoder
from .pnpm import PnpmLockDecoder
from .registry import decode_lock_file, decode_lock_text, detect_dialect, get_decoder, sniff_dialect
from .yarn import YarnLockDecoder

__all__ = [
    "BaseLockDecoder",
    "NpmLockDecoder",
    "PnpmLockDecoder",
    "YarnLockDecoder",
    "decode_lock_file",
    "decode_lock_text",
    "detect_dialect",
    "get_decoder",
    "sniff_dialect",
]
