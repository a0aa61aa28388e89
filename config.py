import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./ledger.db")
    AUTO_CREATE_TABLES = bool(data.get("AUTO_CREATE_TABLES", True))
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = bool(data.get("API_RELOAD", False))
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Commission split
    DEFAULT_COMMISSION_RATE = data.get("DEFAULT_COMMISSION_RATE", "0.07")
    DEFAULT_CURRENCY = data.get("DEFAULT_CURRENCY", "LKR")

    # Ledger entry lifecycle
    PAYMENT_EXPIRY_HOURS = data.get("PAYMENT_EXPIRY_HOURS", 24)
    NON_PAYMENT_EXPIRY_HOURS = data.get("NON_PAYMENT_EXPIRY_HOURS", 72)
    RECENT_FAILURES_WINDOW_HOURS = data.get("RECENT_FAILURES_WINDOW_HOURS", 24)
    NOTIFICATION_WEBHOOK_URL = data.get("NOTIFICATION_WEBHOOK_URL", None)

    # Operator roles -> capabilities (used when AUTH_DISABLED is false)
    ROLE_PERMISSIONS = data.get(
        "ROLE_PERMISSIONS",
        {
            "admin": ["ledger:read", "ledger:write", "commission:read"],
            "finance": ["ledger:read", "commission:read"],
            "support": ["ledger:read"],
        },
    )

    # Expiry sweep (storage-side TTL)
    EXPIRY_SWEEP_ENABLED = bool(data.get("EXPIRY_SWEEP_ENABLED", True))
    EXPIRY_SWEEP_INTERVAL_SECONDS = data.get("EXPIRY_SWEEP_INTERVAL_SECONDS", 300)

    # Commission reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_REPAIR = bool(data.get("RECONCILIATION_REPAIR", False))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily

    # Payout statements
    PLATFORM_NAME = data.get("PLATFORM_NAME", "AIO Marketplace")
    PLATFORM_ADDRESS = data.get("PLATFORM_ADDRESS", "Colombo, Sri Lanka")
