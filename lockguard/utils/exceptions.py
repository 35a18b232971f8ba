"""
Exception hierarchy for lockguard scans.

Each exception includes:
- Clear error message
- Source context (file path or pattern that failed)
- Suggested user action
- Original exception preserved for debugging

Only ConfigurationError is fatal to a scan. DecodeError and PatternError are
recovered close to where they are raised.
"""

from typing import Optional


class LockguardError(Exception):
    """
    Base exception for all lockguard errors.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        suggested_action: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        """
        Initialize LockguardError.

        Args:
            message: Human-readable error message
            source: File path or value the error relates to
            suggested_action: Suggested action for the user to resolve the issue
            original_exception: The original exception that was caught
        """
        self.message = message
        self.source = source
        self.suggested_action = suggested_action
        self.original_exception = original_exception

        error_parts = [message]

        if source:
            error_parts.append(f"Source: {source}")

        if suggested_action:
            error_parts.append(f"Action: {suggested_action}")

        if original_exception:
            error_parts.append(f"Original error: {str(original_exception)}")

        super().__init__(" | ".join(error_parts))


class ConfigurationError(LockguardError):
    """
    Raised when a scan cannot start.

    This typically indicates:
    - package.json is missing, unreadable or not valid JSON
    - The threat database is missing, unreadable or has an invalid shape
    - The YAML configuration file is missing or invalid
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        original_exception: Optional[Exception] = None,
        suggested_action: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            source=source,
            suggested_action=suggested_action or "Fix the file and re-run the scan",
            original_exception=original_exception,
        )


class DecodeError(LockguardError):
    """
    Raised when a lock artifact cannot be decoded.

    Decoders catch this themselves and return whatever entries they could
    recover, so it never reaches the caller of ``decode()``.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            source=source,
            suggested_action="Regenerate the lock file with your package manager",
            original_exception=original_exception,
        )


class PatternError(LockguardError):
    """
    Raised when a trust or ignore pattern has an unsupported shape.

    Only exact names and a trailing namespace wildcard (``@scope/*``) are
    supported.
    """

    def __init__(self, message: str, pattern: Optional[str] = None):
        self.pattern = pattern
        super().__init__(
            message=message,
            source=repr(pattern),
            suggested_action="Use an exact package name or '@scope/*'",
        )
