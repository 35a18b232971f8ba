"""
Threat classifier.

Maps a dependency node to a verdict against the threat database. Rules are
evaluated in a fixed order and the first match wins:

1. caller ignore patterns
2. database trusted patterns
3. confirmed, typosquatting, credential theft and crypto malware lists
4. protestware tiers, high to medium to low
5. campaigns, in database order

Matching is exact name membership plus exact comparison of cleaned version
strings. Version ranges are never interpreted.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import Classification, DependencyNode, Issue, Severity, Verdict
from .patterns import Pattern, matches_any
from .threat_db import Campaign, ThreatDatabase

logger = logging.getLogger(__name__)

RANGE_PREFIX_CHARS = "^~><= \t"

# (database attribute, category label, reason, action) for the critical lists
MALICIOUS_RULES: Tuple[Tuple[str, str, str, str], ...] = (
    (
        "confirmed",
        "Confirmed Malicious",
        "This package has been confirmed as malicious",
        "REMOVE IMMEDIATELY",
    ),
    (
        "typosquatting",
        "Typosquatting",
        "This package name is a typosquatting variant of a popular package",
        "REMOVE IMMEDIATELY - Check you have the correct package name",
    ),
    (
        "credential_theft",
        "Credential Theft",
        "This package has been found to steal credentials",
        "REMOVE IMMEDIATELY - Rotate all credentials",
    ),
    (
        "crypto_malware",
        "Crypto Malware",
        "This package contains cryptocurrency mining or wallet-stealing malware",
        "REMOVE IMMEDIATELY - Check for unauthorized transactions",
    ),
)

PROTESTWARE_CATEGORY = "Protestware"
PROTESTWARE_REASONS: Dict[Severity, str] = {
    Severity.HIGH: "This package contains protestware with destructive behavior",
    Severity.MEDIUM: "This package contains protestware that can disrupt normal operation",
    Severity.LOW: "This package contains protestware that prints messages or changes non-critical behavior",
}
PROTESTWARE_ACTION = "REVIEW - Pin a known-good version or replace this package"

CAMPAIGN_DEFAULT_REASON = "Part of known attack campaign"
CAMPAIGN_SAFE_ACTION = "VERIFY VERSION - Some versions of this package are compromised"
CAMPAIGN_AFFECTED_ACTION = "CHECK VERSION AND UPDATE"


def clean_version(version: str) -> str:
    """Strip range prefix characters such as ``^``, ``~`` and ``>=``."""
    return version.lstrip(RANGE_PREFIX_CHARS).strip()


def _issue(node: DependencyNode, severity: Severity, category: str, reason: str, action: str, **extra) -> Issue:
    return Issue(
        package=node.name,
        version=node.resolved_version,
        severity=severity,
        category=category,
        reason=reason,
        action=action,
        is_direct=node.is_direct,
        is_transitive=node.is_transitive,
        chain=node.chain,
        **extra,
    )


def _check_malicious(node: DependencyNode, database: ThreatDatabase) -> Optional[Issue]:
    for attribute, category, reason, action in MALICIOUS_RULES:
        if node.name in getattr(database.known_malicious, attribute):
            return _issue(node, Severity.CRITICAL, category, reason, action)
    return None


def _check_protestware(node: DependencyNode, database: ThreatDatabase) -> Optional[Issue]:
    for tier in database.protestware:
        if node.name in tier.packages:
            reason = tier.details.get(node.name) or PROTESTWARE_REASONS[tier.severity]
            return _issue(node, tier.severity, PROTESTWARE_CATEGORY, reason, PROTESTWARE_ACTION)
    return None


def _check_campaign(node: DependencyNode, campaign: Campaign) -> Issue:
    affected = campaign.affected_versions.get(node.name)
    category = campaign.name or campaign.campaign_id
    reason = campaign.description or CAMPAIGN_DEFAULT_REASON

    if affected is not None and clean_version(node.resolved_version) not in affected:
        return _issue(
            node,
            Severity.LOW,
            category,
            reason,
            CAMPAIGN_SAFE_ACTION,
            campaign=campaign.campaign_id,
            affected_versions=affected,
            safe_version=True,
        )

    return _issue(
        node,
        campaign.severity,
        category,
        reason,
        CAMPAIGN_AFFECTED_ACTION,
        campaign=campaign.campaign_id,
        affected_versions=affected,
    )


def classify_node(
    node: DependencyNode,
    database: ThreatDatabase,
    ignore_patterns: Sequence[Pattern] = (),
) -> Classification:
    """
    Classify a single dependency.

    Args:
        node: Dependency to classify
        database: Validated threat database
        ignore_patterns: Compiled caller opt-out patterns

    Returns:
        Classification with verdict ISSUE (and the issue), IGNORED, TRUSTED or CLEAN
    """
    if matches_any(node.name, ignore_patterns):
        return Classification(verdict=Verdict.IGNORED, node=node)

    if matches_any(node.name, database.trusted_patterns):
        return Classification(verdict=Verdict.TRUSTED, node=node)

    issue = _check_malicious(node, database) or _check_protestware(node, database)
    if issue is None:
        for campaign in database.campaigns.values():
            if node.name in campaign.packages:
                issue = _check_campaign(node, campaign)
                break

    if issue is None:
        return Classification(verdict=Verdict.CLEAN, node=node)
    return Classification(verdict=Verdict.ISSUE, node=node, issue=issue)


def classify_graph(
    nodes: Iterable[DependencyNode],
    database: ThreatDatabase,
    ignore_patterns: Sequence[Pattern] = (),
) -> List[Classification]:
    """Classify every node, preserving input order."""
    classifications = [classify_node(node, database, ignore_patterns) for node in nodes]
    flagged = sum(1 for c in classifications if c.verdict is Verdict.ISSUE)
    logger.debug(f"Classified {len(classifications)} packages, {flagged} flagged")
    return classifications
