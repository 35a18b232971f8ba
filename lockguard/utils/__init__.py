"""Shared utilities for lockguard."""

from .exceptions import ConfigurationError, DecodeError, LockguardError, PatternError

__all__ = ["LockguardError", "ConfigurationError", "DecodeError", "PatternError"]
