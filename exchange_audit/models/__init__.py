from exchange_audit.models.account import AdminAccount, UserAccount
from exchange_audit.models.audit_log import AuditLogRecord

__all__ = [
    "AdminAccount",
    "UserAccount",
    "AuditLogRecord",
]
