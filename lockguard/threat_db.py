"""
Threat database model and loader.

The database is a JSON document mixing flat deny-lists, severity-tiered
protestware lists and version-scoped campaign records. It is validated once
at load time and every optional collection is filled in with an empty value,
so the classifier never has to check for missing keys.

Expected shape::

    {
      "version": "2.1.0",
      "lastUpdated": "2025-09-16",
      "campaigns": {
        "<id>": {"name", "date", "severity", "description",
                 "packages": [...], "affectedVersions": {"<pkg>": [...]}}
      },
      "knownMalicious": {"confirmed": [], "typosquatting": [],
                         "credentialTheft": [], "cryptoMalware": []},
      "protestware": {"high": {"packages": [], "details": {}}, "medium": ..., "low": ...},
      "trustedPackages": {"packages": ["@types/*", ...]}
    }

``lastUpdatedDate`` is accepted in place of ``lastUpdated`` and a flat
``trustedPatterns`` list in place of ``trustedPackages.packages``.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

try:
    # Use modern importlib.resources (Python 3.9+)
    import importlib.resources as importlib_resources
except ImportError:  # pragma: no cover
    importlib_resources = None

from .models import Severity
from .patterns import Pattern, compile_patterns
from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DATABASE_FILE_NAME = "compromised-packages.json"
MALICIOUS_CATEGORIES = ("confirmed", "typosquatting", "credentialTheft", "cryptoMalware")
PROTESTWARE_TIERS = (Severity.HIGH, Severity.MEDIUM, Severity.LOW)
DEFAULT_CAMPAIGN_SEVERITY = Severity.HIGH


@dataclass(frozen=True)
class Campaign:
    """A coordinated compromise of several packages.

    A package listed in ``packages`` without an ``affected_versions`` entry is
    affected in every version.
    """
    campaign_id: str
    name: str
    date: str
    severity: Severity
    description: str
    packages: FrozenSet[str]
    affected_versions: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class KnownMalicious:
    confirmed: FrozenSet[str] = frozenset()
    typosquatting: FrozenSet[str] = frozenset()
    credential_theft: FrozenSet[str] = frozenset()
    crypto_malware: FrozenSet[str] = frozenset()

    def all_packages(self) -> FrozenSet[str]:
        return self.confirmed | self.typosquatting | self.credential_theft | self.crypto_malware


@dataclass(frozen=True)
class ProtestwareTier:
    severity: Severity
    packages: FrozenSet[str] = frozenset()
    details: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ThreatDatabase:
    """Validated, immutable view of the threat database."""
    version: str
    last_updated: str
    campaigns: Dict[str, Campaign] = field(default_factory=dict)
    known_malicious: KnownMalicious = field(default_factory=KnownMalicious)
    protestware: Tuple[ProtestwareTier, ...] = tuple(ProtestwareTier(severity=tier) for tier in PROTESTWARE_TIERS)
    trusted_patterns: Tuple[Pattern, ...] = ()
    source: Optional[str] = None

    def summary(self) -> Dict[str, Any]:
        """Counts shown in verbose output."""
        return {
            "version": self.version,
            "lastUpdated": self.last_updated,
            "knownMalicious": len(self.known_malicious.all_packages()),
            "campaigns": len(self.campaigns),
            "protestware": sum(len(tier.packages) for tier in self.protestware),
            "trustedPatterns": len(self.trusted_patterns),
        }


def _require_string(data: Dict[str, Any], keys: Iterable[str], source: Optional[str]) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value
    names = " or ".join(f"'{key}'" for key in keys)
    raise ConfigurationError(f"Threat database must define {names} as a non-empty string", source=source)


def _mapping(value: Any, field_name: str, source: Optional[str]) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{field_name}' must be an object", source=source)
    return value


def _string_list(value: Any, field_name: str, source: Optional[str]) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"'{field_name}' must be a list of strings", source=source)
    return value


def _severity(value: Any, field_name: str, source: Optional[str]) -> Severity:
    if value is None or value == "":
        return DEFAULT_CAMPAIGN_SEVERITY
    try:
        return Severity(str(value).lower())
    except ValueError:
        raise ConfigurationError(
            f"'{field_name}' must be one of critical, high, medium, low, got {value!r}", source=source
        )


def _parse_campaign(campaign_id: str, data: Any, source: Optional[str]) -> Campaign:
    prefix = f"campaigns.{campaign_id}"
    data = _mapping(data, prefix, source)
    affected = _mapping(data.get("affectedVersions"), f"{prefix}.affectedVersions", source)
    return Campaign(
        campaign_id=campaign_id,
        name=str(data.get("name") or campaign_id),
        date=str(data.get("date") or ""),
        severity=_severity(data.get("severity"), f"{prefix}.severity", source),
        description=str(data.get("description") or ""),
        packages=frozenset(_string_list(data.get("packages"), f"{prefix}.packages", source)),
        affected_versions={
            package: tuple(_string_list(versions, f"{prefix}.affectedVersions.{package}", source))
            for package, versions in affected.items()
        },
    )


def _parse_protestware(data: Any, source: Optional[str]) -> Tuple[ProtestwareTier, ...]:
    data = _mapping(data, "protestware", source)
    tiers = []
    for severity in PROTESTWARE_TIERS:
        tier = data.get(severity.value)
        field_name = f"protestware.{severity.value}"
        if isinstance(tier, list):
            tiers.append(ProtestwareTier(severity=severity, packages=frozenset(_string_list(tier, field_name, source))))
            continue
        tier = _mapping(tier, field_name, source)
        details = _mapping(tier.get("details"), f"{field_name}.details", source)
        tiers.append(ProtestwareTier(
            severity=severity,
            packages=frozenset(_string_list(tier.get("packages"), f"{field_name}.packages", source)),
            details={name: str(detail) for name, detail in details.items() if detail},
        ))
    return tuple(tiers)


def parse_database(data: Any, source: Optional[str] = None) -> ThreatDatabase:
    """
    Validate a decoded database document.

    Args:
        data: Decoded JSON document
        source: Where the document came from, for error messages

    Returns:
        ThreatDatabase with every optional collection present

    Raises:
        ConfigurationError: if the document does not have the expected shape
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Threat database must be a JSON object", source=source)

    version = _require_string(data, ("version",), source)
    last_updated = _require_string(data, ("lastUpdated", "lastUpdatedDate"), source)

    malicious = _mapping(data.get("knownMalicious"), "knownMalicious", source)
    lists = {
        category: frozenset(_string_list(malicious.get(category), f"knownMalicious.{category}", source))
        for category in MALICIOUS_CATEGORIES
    }

    campaigns = {
        campaign_id: _parse_campaign(campaign_id, campaign, source)
        for campaign_id, campaign in _mapping(data.get("campaigns"), "campaigns", source).items()
    }

    if "trustedPatterns" in data:
        raw_trusted = _string_list(data.get("trustedPatterns"), "trustedPatterns", source)
    else:
        trusted = _mapping(data.get("trustedPackages"), "trustedPackages", source)
        raw_trusted = _string_list(trusted.get("packages"), "trustedPackages.packages", source)

    return ThreatDatabase(
        version=version,
        last_updated=last_updated,
        campaigns=campaigns,
        known_malicious=KnownMalicious(
            confirmed=lists["confirmed"],
            typosquatting=lists["typosquatting"],
            credential_theft=lists["credentialTheft"],
            crypto_malware=lists["cryptoMalware"],
        ),
        protestware=_parse_protestware(data.get("protestware"), source),
        trusted_patterns=compile_patterns(raw_trusted, source="trusted packages"),
        source=source,
    )


def load_database(path: Path) -> ThreatDatabase:
    """Load and validate the threat database from a JSON file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError("Threat database not found", source=str(path), original_exception=e)
    except (OSError, ValueError) as e:
        raise ConfigurationError("Error loading threat database", source=str(path), original_exception=e)

    database = parse_database(data, source=str(path))
    logger.info(f"Threat database {database.version} ({database.last_updated}) loaded from {path}")
    return database


def packaged_database_path() -> Optional[Path]:
    """Path of the database shipped with lockguard, if available."""
    if importlib_resources is None:
        return None
    try:
        resource = importlib_resources.files("lockguard.data") / DATABASE_FILE_NAME
    except (ModuleNotFoundError, TypeError):
        return None
    path = Path(str(resource))
    return path if path.is_file() else None


def find_database(project_root: Path) -> Optional[Path]:
    """
    Find the threat database for a project.

    Looks in ``security/`` and the project root before falling back to the
    database shipped with the package.
    """
    project_root = Path(project_root)
    candidates = [
        project_root / "security" / DATABASE_FILE_NAME,
        project_root / DATABASE_FILE_NAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return packaged_database_path()
