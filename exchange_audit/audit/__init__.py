"""Audit logging module for the exchange admin portal.

This module provides the compliance audit trail with:
- One immutable entry per action across admin, user and system streams
- Rule-based severity classification and compliance review flags
- Salted HMAC freeze checksums for tamper evidence
- Sanitization of external payloads (secret redaction, string truncation)
- JSON Patch diffs of admin before/after snapshots
- Best-effort request context and actor snapshot resolution
- Timed, sanitized logging of KYC provider API calls

Usage:
    from exchange_audit.audit import (
        # Service initialization
        init_audit_service,
        get_audit_service,

        # Core models
        ActorType,
        AuditSeverity,
        AuditAction,
        AuditEntity,
    )

    # Initialize during startup
    service = init_audit_service(db_session)

    # Log an admin mutation
    await service.log_admin_action(
        "adm_1",
        AuditAction.USER_SUSPENDED,
        AuditEntity.USER,
        "usr_42",
        {"status": "ACTIVE"},
        {"status": "SUSPENDED"},
    )
"""

# Models - core data structures and enums
from exchange_audit.audit.actions import AuditAction, AuditEntity
from exchange_audit.audit.actors import ActorDirectory

# Config - classification rules and sanitization limits
from exchange_audit.audit.config import (
    CHECKSUM_FIELDS,
    CRITICAL_ACTIONS,
    MAX_STRING_LENGTH,
    REDACTION_TRIGGERS,
    REVIEWABLE_ACTIONS,
    WARNING_KEYWORDS,
    classify_severity,
    is_reviewable_action,
)

# Context - request-scoped client IP and user agent
from exchange_audit.audit.context import (
    bind_request_headers,
    request_scope,
    reset_request_headers,
    resolve_context,
)

# Diff - JSON Patch of before/after snapshots
from exchange_audit.audit.diff import compute_changes

# Factory - entry creation
from exchange_audit.audit.factory import create_audit_entry

# Integrity - checksum computation and verification
from exchange_audit.audit.integrity import (
    ChecksumGenerator,
    compute_checksum,
    verify_checksum,
    verify_entries,
)

# KYC - provider API call logging
from exchange_audit.audit.kyc_logger import KycApiCall, KycApiLogger, KycProvider
from exchange_audit.audit.models import (
    ActorSnapshot,
    ActorType,
    AuditEntry,
    AuditSeverity,
    JSONValue,
    RequestContext,
)
from exchange_audit.audit.noncritical import non_critical

# Query - read path
from exchange_audit.audit.query import (
    AuditLogPage,
    AuditQueryService,
    AuditStatistics,
    TopActor,
)

# Repository - database operations
from exchange_audit.audit.repository import (
    AuditQueryFilters,
    AuditRepository,
    AuditSink,
)

# Sanitize - payload redaction and truncation
from exchange_audit.audit.sanitize import sanitize_payload

# Service - main audit service
from exchange_audit.audit.service import AuditService

# Setup - initialization
from exchange_audit.audit.setup import (
    get_audit_query_service,
    get_audit_service,
    get_kyc_api_logger,
    init_audit_service,
)

__all__ = [
    # Models
    "ActorType",
    "AuditSeverity",
    "AuditEntry",
    "RequestContext",
    "ActorSnapshot",
    "JSONValue",
    "AuditAction",
    "AuditEntity",
    # Config
    "CRITICAL_ACTIONS",
    "WARNING_KEYWORDS",
    "REVIEWABLE_ACTIONS",
    "CHECKSUM_FIELDS",
    "REDACTION_TRIGGERS",
    "MAX_STRING_LENGTH",
    "classify_severity",
    "is_reviewable_action",
    # Integrity
    "ChecksumGenerator",
    "compute_checksum",
    "verify_checksum",
    "verify_entries",
    # Sanitize
    "sanitize_payload",
    # Context
    "bind_request_headers",
    "reset_request_headers",
    "request_scope",
    "resolve_context",
    "non_critical",
    # Diff
    "compute_changes",
    # Factory
    "create_audit_entry",
    # Repository
    "AuditRepository",
    "AuditQueryFilters",
    "AuditSink",
    "ActorDirectory",
    # Service
    "AuditService",
    "AuditQueryService",
    "AuditLogPage",
    "AuditStatistics",
    "TopActor",
    "KycApiLogger",
    "KycApiCall",
    "KycProvider",
    # Setup
    "init_audit_service",
    "get_audit_service",
    "get_audit_query_service",
    "get_kyc_api_logger",
]
