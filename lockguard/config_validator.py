"""Configuration validation for lockguard."""

from typing import Any, Dict, List

from .models import SEVERITY_ORDER

VALID_SEVERITIES = [severity.value for severity in SEVERITY_ORDER]


class ConfigValidator:
    """Validates lockguard configuration before a scan starts."""

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """Validate complete configuration.

        Args:
            config: Configuration dictionary

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not isinstance(config, dict):
            errors.append("Configuration must be a mapping")
            return errors

        if "scan" in config:
            errors.extend(self.validate_scan(config["scan"]))

        if "database" in config:
            errors.extend(self._validate_optional_paths(config["database"], "database", ("path",)))

        if "output" in config:
            errors.extend(self._validate_optional_paths(config["output"], "output", ("json_file",)))

        if "ignore_patterns" in config:
            errors.extend(self.validate_ignore_patterns(config["ignore_patterns"]))

        return errors

    def validate_scan(self, scan_config: Any) -> List[str]:
        """Validate the ``scan`` section.

        Args:
            scan_config: Scan configuration dictionary

        Returns:
            List of validation error messages
        """
        if not isinstance(scan_config, dict):
            return ["'scan' section must be a mapping"]

        errors = []
        if "deep" in scan_config and not isinstance(scan_config["deep"], bool):
            errors.append("'scan.deep' must be boolean")

        threshold = scan_config.get("severity_threshold")
        if threshold is not None and (not isinstance(threshold, str) or threshold.lower() not in VALID_SEVERITIES):
            errors.append(
                f"'scan.severity_threshold' must be one of {', '.join(VALID_SEVERITIES)}, got {threshold!r}"
            )

        errors.extend(self._validate_optional_paths(scan_config, "scan", ("lock_file",)))
        return errors

    def validate_ignore_patterns(self, patterns: Any) -> List[str]:
        """Validate the ``ignore_patterns`` list.

        Args:
            patterns: Ignore pattern list

        Returns:
            List of validation error messages
        """
        if patterns is None:
            return []
        if not isinstance(patterns, list):
            return ["'ignore_patterns' must be a list"]

        return [
            f"ignore_patterns[{i}] must be a string, got {type(pattern).__name__}"
            for i, pattern in enumerate(patterns)
            if not isinstance(pattern, str)
        ]

    def _validate_optional_paths(self, section: Any, section_name: str, keys) -> List[str]:
        if not isinstance(section, dict):
            return [f"'{section_name}' section must be a mapping"]
        return [
            f"'{section_name}.{key}' must be a string path"
            for key in keys
            if section.get(key) is not None and not isinstance(section[key], str)
        ]
