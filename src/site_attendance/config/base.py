"""Settings shared by every environment; each module overrides what differs."""

import json
import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "site_attendance"),
}

DEBUG = False

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

TIMEZONE = os.getenv("TIMEZONE", "Asia/Seoul")
ENABLE_SCHEDULER = bool(int(os.getenv("ENABLE_SCHEDULER", "1")))
DAILY_RESET_AT = os.getenv("DAILY_RESET_AT", "20:00")
SWEEP_TIMES = json.loads(os.getenv("SWEEP_TIMES", '{"T1": "16:30", "T2": "17:00", "T3": "17:30"}'))

# Used only while no siteConfig document exists.
SITE_DEFAULT = {
    "lat": float(os.getenv("SITE_LAT", "37.536111")),
    "lng": float(os.getenv("SITE_LNG", "126.833333")),
    "radius_meters": float(os.getenv("SITE_RADIUS_METERS", "500")),
}

PRINCIPAL_PAGE_SIZE = int(os.getenv("PRINCIPAL_PAGE_SIZE", "1000"))
MAX_WORKERS = int(os.getenv("MAX_WORKERS", "16"))
STEP_TIMEOUT_SECONDS = float(os.getenv("STEP_TIMEOUT_SECONDS", "300"))
AUTO_CHECKOUT_AFTER_MINUTES = int(os.getenv("AUTO_CHECKOUT_AFTER_MINUTES", "30"))
