"""Audit classification rules and sanitization configuration.

This module defines the static rules of the audit logging system:
- Severity classification (critical action set and warning keywords)
- Reviewable actions routed to the compliance review queue
- Checksum fields for integrity verification
- Redaction triggers and truncation limits for external payloads

Severity is classified with three-tier precedence:
    1. Exact membership in CRITICAL_ACTIONS -> CRITICAL
    2. Action contains any of WARNING_KEYWORDS -> WARNING
    3. Anything else -> INFO

Keyword matching lets new tags (``ADMIN_TERMINATED``, ``USER_DELETED``)
classify themselves without touching this file. Incidental matches such as
``REJECT_REASON_UPDATED`` becoming WARNING are accepted.
"""

from exchange_audit.audit.models import AuditSeverity

# =============================================================================
# SEVERITY CONFIGURATION
# =============================================================================

CRITICAL_ACTIONS: frozenset[str] = frozenset(
    {
        # Role and privilege changes
        "ADMIN_ROLE_CHANGED",
        "SUPER_ADMIN_CREATED",
        # Admin lifecycle
        "ADMIN_DELETED",
        # API key and integration secrets
        "API_KEY_CREATED",
        "API_KEY_GENERATED",
        "API_KEY_REVOKED",
        "INTEGRATION_KEY_UPDATED",
        # Money movement approvals
        "APPROVE_PAYOUT",
        "APPROVE_PAYIN",
        "PAYOUT_APPROVED",
        # Access escalation
        "USER_IMPERSONATED",
        "BREAK_GLASS_USED",
        "BREAKGLASS_LOGIN",
        "MFA_DISABLED",
        # Limits and platform settings
        "LIMITS_CHANGED",
        "SYSTEM_SETTINGS_CHANGED",
        # Tenant lifecycle
        "TENANT_DELETED",
        # Bulk personal data export
        "KYC_DATA_EXPORTED",
        "PII_EXPORTED",
        # AML filing
        "AML_STR_SUBMITTED",
    }
)
"""Actions that are always CRITICAL, checked before keyword matching."""

WARNING_KEYWORDS: tuple[str, ...] = ("DELETE", "SUSPEND", "REJECT", "TERMINATE")
"""Substrings that make an otherwise unlisted action a WARNING."""

REVIEWABLE_ACTIONS: frozenset[str] = frozenset(
    {
        "APPROVE_PAYOUT",
        "APPROVE_PAYIN",
        "PAYOUT_APPROVED",
        "KYC_APPROVED",
        "KYC_REJECTED",
        "KYC_OVERRIDE",
        "AML_CASE_CREATED",
        "AML_STR_SUBMITTED",
        "USER_SUSPENDED",
        "ADMIN_SUSPENDED",
        "ADMIN_ROLE_CHANGED",
        "MFA_DISABLED",
        "BREAKGLASS_LOGIN",
        "SYSTEM_SETTINGS_CHANGED",
        "LARGE_TRANSACTION",
    }
)
"""Actions flagged for the compliance review queue unless the caller overrides."""


# =============================================================================
# CHECKSUM CONFIGURATION
# =============================================================================

CHECKSUM_FIELDS: list[str] = [
    "actor_type",
    "actor_id",
    "action",
    "entity_type",
    "entity_id",
    "created_at",
]
"""Field names covered by the freeze checksum.

All of them are fixed before persistence. The database id is deliberately
absent so the checksum never depends on storage.
"""


# =============================================================================
# SANITIZATION CONFIGURATION
# =============================================================================

REDACTION_TRIGGERS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "apikey",
    "api_key",
    "authorization",
    # Provider request signing headers
    "x-app-token",
    "x-app-access-sig",
    "x-app-access-ts",
)
"""Lowercase substrings; any key containing one has its value redacted."""

REDACTED: str = "[REDACTED]"

MAX_STRING_LENGTH: int = 500
"""Strings longer than this are truncated before logging (base64 blobs, images)."""


# =============================================================================
# SENTINELS
# =============================================================================

UNKNOWN: str = "unknown"
"""Placeholder for identity or network fields that could not be resolved."""


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def classify_severity(action: str) -> AuditSeverity:
    """Classify an action tag into a severity.

    Args:
        action: The action tag, e.g. "ORDER_STATUS_CHANGED".

    Returns:
        CRITICAL for listed actions, WARNING for keyword hits, INFO otherwise.
    """
    if action in CRITICAL_ACTIONS:
        return AuditSeverity.CRITICAL

    if any(keyword in action for keyword in WARNING_KEYWORDS):
        return AuditSeverity.WARNING

    return AuditSeverity.INFO


def is_reviewable_action(action: str) -> bool:
    """Check if an action belongs in the compliance review queue.

    Args:
        action: The action tag.

    Returns:
        True if the action is in REVIEWABLE_ACTIONS.
    """
    return action in REVIEWABLE_ACTIONS
