import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./entitlements.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")  # redis | none
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Subscription lifecycle
    TRIAL_DAYS = int(data.get("TRIAL_DAYS", 7))
    DEVICE_LIMIT = int(data.get("DEVICE_LIMIT", 2))
    EXPIRY_WARNING_DAYS = data.get("EXPIRY_WARNING_DAYS", [3, 1])
    ACCESS_CACHE_TTL_SECONDS = int(data.get("ACCESS_CACHE_TTL_SECONDS", 10))

    # Payments
    PAYMENT_GATEWAY = data.get("PAYMENT_GATEWAY", "simulation")  # simulation | cmi | tijari
    PAYMENT_CURRENCY = data.get("PAYMENT_CURRENCY", "MAD")
    PAYMENT_POLL_INTERVAL_SECONDS = float(data.get("PAYMENT_POLL_INTERVAL_SECONDS", 3))
    PAYMENT_POLL_TIMEOUT_SECONDS = float(data.get("PAYMENT_POLL_TIMEOUT_SECONDS", 60))
    PLAN_PRICES = data.get("PLAN_PRICES", {"monthly": 5, "quarterly": 13, "yearly": 45})
    PLAN_DURATIONS = data.get("PLAN_DURATIONS", {"monthly": 1, "quarterly": 3, "yearly": 6})

    # Notifications
    PUSH_NOTIFICATION_URL = data.get("PUSH_NOTIFICATION_URL", None)

    # Expiry sweep worker
    EXPIRY_CHECK_ENABLED = bool(data.get("EXPIRY_CHECK_ENABLED", True))
    EXPIRY_CHECK_INTERVAL_SECONDS = data.get("EXPIRY_CHECK_INTERVAL_SECONDS", 3600)  # Hourly
