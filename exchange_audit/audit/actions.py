"""Known audit action tags and entity names.

Action tags are plain strings. New tags can be logged without being listed
here; these constants only keep call sites consistent.
"""


class AuditAction:
    # User actions
    USER_REGISTERED = "USER_REGISTERED"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_UPDATED = "USER_UPDATED"
    USER_BLOCKED = "USER_BLOCKED"
    USER_UNBLOCKED = "USER_UNBLOCKED"
    USER_SUSPENDED = "USER_SUSPENDED"
    USER_DELETED = "USER_DELETED"
    USER_IMPERSONATED = "USER_IMPERSONATED"

    # Order actions
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
    ORDER_UPDATED = "ORDER_UPDATED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_COMPLETED = "ORDER_COMPLETED"
    PAYMENT_PROOF_UPLOADED = "PAYMENT_PROOF_UPLOADED"

    # KYC actions
    KYC_CREATED = "KYC_CREATED"
    KYC_SUBMITTED = "KYC_SUBMITTED"
    KYC_RESUBMITTED = "KYC_RESUBMITTED"
    KYC_DOCUMENT_UPLOADED = "KYC_DOCUMENT_UPLOADED"
    KYC_APPROVED = "KYC_APPROVED"
    KYC_REJECTED = "KYC_REJECTED"
    KYC_DELETED = "KYC_DELETED"
    KYC_VIEWED = "KYC_VIEWED"
    KYC_WEBHOOK_RECEIVED = "KYC_WEBHOOK_RECEIVED"
    KYC_STATUS_CHANGED = "KYC_STATUS_CHANGED"
    KYC_API_REQUEST = "KYC_API_REQUEST"
    KYC_API_ERROR = "KYC_API_ERROR"

    # Admin actions
    ADMIN_ROLE_CHANGED = "ADMIN_ROLE_CHANGED"
    ADMIN_DELETED = "ADMIN_DELETED"
    ADMIN_SUSPENDED = "ADMIN_SUSPENDED"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"
    SYSTEM_SETTINGS_CHANGED = "SYSTEM_SETTINGS_CHANGED"
    BANK_DETAILS_UPDATED = "BANK_DETAILS_UPDATED"
    TRADING_PAIR_UPDATED = "TRADING_PAIR_UPDATED"
    CURRENCY_UPDATED = "CURRENCY_UPDATED"
    PAYMENT_METHOD_UPDATED = "PAYMENT_METHOD_UPDATED"
    WALLET_ADDED = "WALLET_ADDED"
    WALLET_REMOVED = "WALLET_REMOVED"
    MANUAL_RATE_SET = "MANUAL_RATE_SET"
    INTEGRATION_UPDATED = "INTEGRATION_UPDATED"
    API_KEY_GENERATED = "API_KEY_GENERATED"
    API_KEY_REVOKED = "API_KEY_REVOKED"
    PAYOUT_APPROVED = "PAYOUT_APPROVED"
    MFA_DISABLED = "MFA_DISABLED"
    LIMITS_CHANGED = "LIMITS_CHANGED"
    TENANT_DELETED = "TENANT_DELETED"
    PII_EXPORTED = "PII_EXPORTED"
    AML_STR_SUBMITTED = "AML_STR_SUBMITTED"

    # Audit trail maintenance
    AUDIT_LOG_REVIEWED = "AUDIT_LOG_REVIEWED"

    # System actions
    SYSTEM_ERROR = "SYSTEM_ERROR"
    SYSTEM_WARNING = "SYSTEM_WARNING"
    SYSTEM_MAINTENANCE = "SYSTEM_MAINTENANCE"


class AuditEntity:
    USER = "User"
    ADMIN = "Admin"
    ORDER = "Order"
    KYC_SESSION = "KycSession"
    TRADING_PAIR = "TradingPair"
    CURRENCY = "Currency"
    FIAT_CURRENCY = "FiatCurrency"
    BANK_DETAILS = "BankDetails"
    PAYMENT_METHOD = "PaymentMethod"
    PLATFORM_WALLET = "PlatformWallet"
    USER_WALLET = "UserWallet"
    MANUAL_RATE = "ManualRate"
    INTEGRATION_SETTING = "IntegrationSetting"
    SYSTEM_SETTINGS = "SystemSettings"
    API_KEY = "ApiKey"
    AUDIT_LOG = "AuditLog"
