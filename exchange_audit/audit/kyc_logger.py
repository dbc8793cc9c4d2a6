"""Audit logging of outbound calls to KYC providers.

Every request to a KYC provider (Sumsub, KYCAID) is recorded on the KYC
session's audit trail with endpoint, method, sanitized request/response
payloads, response time and status code. Payloads are reduced to plain JSON
first; dates, decimals and other objects are stored as their string form.

Logging here is purely observational:
- the wrapped call's result or exception always reaches the caller unchanged
- a failing audit write is logged as a warning and discarded

Example:
    >>> result = await kyc_api_logger.measure_api_call(
    ...     "ks_abc123",
    ...     KycProvider.SUMSUB,
    ...     "/resources/applicants",
    ...     "POST",
    ...     {"externalUserId": "123"},
    ...     lambda: client.create_applicant(...),
    ... )
"""

import json
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, TypeVar

from exchange_audit.audit.actions import AuditAction, AuditEntity
from exchange_audit.audit.models import JSONValue
from exchange_audit.audit.noncritical import non_critical
from exchange_audit.audit.sanitize import sanitize_payload
from exchange_audit.audit.service import AuditService

T = TypeVar("T")

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

SUCCESS_STATUS_CODE = 200
DEFAULT_ERROR_STATUS_CODE = 500


class KycProvider(str, Enum):
    SUMSUB = "sumsub"
    KYCAID = "kycaid"


@dataclass
class KycApiCall:
    """One call to a KYC provider, as recorded on the audit trail."""

    kyc_session_id: str
    provider: KycProvider
    endpoint: str
    method: HttpMethod
    request_payload: Any = None
    response_payload: Any = None
    response_time: str | None = None
    status_code: int | None = None
    error: str | None = None
    note: str | None = None


def _error_status_code(error: BaseException) -> int:
    """Best guess of the HTTP status carried by a provider error."""
    for attribute in ("status_code", "status"):
        value = getattr(error, attribute, None)
        if isinstance(value, int):
            return value

    response = getattr(error, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code

    return DEFAULT_ERROR_STATUS_CODE


def _elapsed_ms(start: float) -> str:
    return f"{round((time.monotonic() - start) * 1000)}ms"


class KycApiLogger:
    """Records KYC provider API calls on the audit trail.

    Args:
        audit_service: AuditService used for the underlying writes
    """

    def __init__(self, audit_service: AuditService) -> None:
        self._audit_service = audit_service

    @non_critical(fallback=None, message="Failed to log KYC API call")
    async def log_api_request(self, call: KycApiCall) -> None:
        """Write one KYC API call entry. Never raises."""
        action = AuditAction.KYC_API_ERROR if call.error else AuditAction.KYC_API_REQUEST
        provider = KycProvider(call.provider)

        await self._audit_service.log_system_action(
            action,
            AuditEntity.KYC_SESSION,
            call.kyc_session_id,
            {
                "provider": provider.value,
                "endpoint": f"{call.method} {call.endpoint}",
                "request_payload": sanitize_payload(_json_safe(call.request_payload)),
                "response_payload": sanitize_payload(_json_safe(call.response_payload)),
                "response_time": call.response_time,
                "status_code": call.status_code,
                "error": call.error,
                "note": call.note,
                "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            },
        )

    async def measure_api_call(
        self,
        kyc_session_id: str,
        provider: KycProvider,
        endpoint: str,
        method: HttpMethod,
        request_payload: JSONValue,
        api_call: Callable[[], Awaitable[T]],
    ) -> T:
        """Time and log a provider call, returning its result.

        Args:
            kyc_session_id: KYC session the call belongs to
            provider: KYC provider
            endpoint: Provider path, e.g. "/resources/applicants"
            method: HTTP method
            request_payload: Request body or parameters (sanitized before logging)
            api_call: Zero-argument coroutine function performing the call

        Returns:
            Whatever api_call returned

        Raises:
            Exception: Whatever api_call raised, unchanged
        """
        start = time.monotonic()

        try:
            result = await api_call()
        except Exception as error:
            await self.log_api_request(
                KycApiCall(
                    kyc_session_id=kyc_session_id,
                    provider=provider,
                    endpoint=endpoint,
                    method=method,
                    request_payload=request_payload,
                    error=str(error) or repr(error),
                    response_time=_elapsed_ms(start),
                    status_code=_error_status_code(error),
                )
            )
            raise

        await self.log_api_request(
            KycApiCall(
                kyc_session_id=kyc_session_id,
                provider=provider,
                endpoint=endpoint,
                method=method,
                request_payload=request_payload,
                response_payload=result,
                response_time=_elapsed_ms(start),
                status_code=SUCCESS_STATUS_CODE,
            )
        )
        return result

    async def log_api_call_with_status(
        self,
        kyc_session_id: str,
        provider: KycProvider,
        endpoint: str,
        method: HttpMethod,
        request_payload: JSONValue,
        status_code: int,
        response_payload: JSONValue = None,
        note: str | None = None,
    ) -> None:
        """Log a call whose status is already known, without timing it.

        Used for webhook receipts and other calls not made through
        ``measure_api_call``.
        """
        await self.log_api_request(
            KycApiCall(
                kyc_session_id=kyc_session_id,
                provider=provider,
                endpoint=endpoint,
                method=method,
                request_payload=request_payload,
                response_payload=response_payload,
                status_code=status_code,
                note=note,
            )
        )


def _json_safe(value: Any) -> JSONValue:
    """Reduce a payload to plain JSON types; dates, decimals and other objects become strings."""
    return json.loads(json.dumps(value, default=str))
