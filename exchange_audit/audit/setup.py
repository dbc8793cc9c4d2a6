"""Audit system initialization.

This module provides functions to initialize and access the global audit
services. The AuditService is the main entry point for recording audit
entries throughout the application; the AuditQueryService backs the admin
dashboards; the KycApiLogger wraps calls to KYC providers.

Usage:
    from exchange_audit.audit.setup import init_audit_service, get_audit_service

    # During startup (with a database session):
    service = init_audit_service(db_session)

    # Later, anywhere in the app:
    service = get_audit_service()
    if service:
        await service.log_admin_action(
            "adm_1",
            AuditAction.ORDER_STATUS_CHANGED,
            AuditEntity.ORDER,
            "ord_9",
            {"status": "PENDING"},
            {"status": "PROCESSING"},
        )

Example integration for a KYC provider client:
    from exchange_audit.audit.setup import get_kyc_api_logger

    async def create_applicant(session_id: str, body: dict):
        kyc_logger = get_kyc_api_logger()
        return await kyc_logger.measure_api_call(
            session_id,
            KycProvider.SUMSUB,
            "/resources/applicants",
            "POST",
            body,
            lambda: http.post("/resources/applicants", json=body),
        )
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from exchange_audit.audit.actors import ActorDirectory
from exchange_audit.audit.integrity import ChecksumGenerator
from exchange_audit.audit.kyc_logger import KycApiLogger
from exchange_audit.audit.query import AuditQueryService
from exchange_audit.audit.repository import AuditRepository
from exchange_audit.audit.service import AuditService
from exchange_audit.config import Settings, settings

logger = logging.getLogger(__name__)

_audit_service: AuditService | None = None
_audit_query_service: AuditQueryService | None = None
_kyc_api_logger: KycApiLogger | None = None


def build_audit_service(db_session: AsyncSession, config: Settings = settings) -> AuditService:
    """Wire an AuditService to a database session without touching globals.

    Args:
        db_session: Database session for persistence and actor lookups
        config: Settings providing the checksum salt

    Returns:
        Configured AuditService instance
    """
    repo = AuditRepository(db_session)
    return AuditService(
        sink=repo,
        actors=ActorDirectory(db_session),
        checksum=ChecksumGenerator(config.effective_audit_salt),
        repository=repo,
    )


def build_query_service(db_session: AsyncSession) -> AuditQueryService:
    return AuditQueryService(
        repository=AuditRepository(db_session),
        actors=ActorDirectory(db_session),
    )


def init_audit_service(db_session: AsyncSession, config: Settings = settings) -> AuditService:
    """Initialize the audit services with a database session.

    Creates the AuditService, AuditQueryService and KycApiLogger sharing the
    provided session and stores them in global instances for access via the
    ``get_*`` functions.

    Args:
        db_session: Database session for persistence
        config: Settings providing the checksum salt

    Returns:
        Configured AuditService instance
    """
    global _audit_service, _audit_query_service, _kyc_api_logger

    _audit_service = build_audit_service(db_session, config)
    _audit_query_service = build_query_service(db_session)
    _kyc_api_logger = KycApiLogger(_audit_service)
    logger.info("AuditService initialized")

    return _audit_service


def get_audit_service() -> AuditService | None:
    """Get the global audit service instance.

    Returns:
        The initialized AuditService, or None if not yet initialized.
        Callers should check for None before using.
    """
    return _audit_service


def get_audit_query_service() -> AuditQueryService | None:
    return _audit_query_service


def get_kyc_api_logger() -> KycApiLogger | None:
    return _kyc_api_logger
