"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Atomic write-batch ceiling of the document store.
BATCH_LIMIT = 500

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_PRINCIPAL_PAGE_SIZE = 1000
DEFAULT_MAX_WORKERS = 16
DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES = 30
# Persistent bulletins whose expiry cannot be read are dropped this long after creation.
MALFORMED_BULLETIN_MAX_AGE_DAYS = 30

COLLECTION_ATTENDANCE = "attendanceRecords"
COLLECTION_DEPARTMENTS = "departments"
COLLECTION_BULLETINS = "bulletins"
COLLECTION_EMERGENCY_ALERTS = "emergencyAlerts"
COLLECTION_SITE_CONFIG = "siteConfig"
COLLECTION_SITE_STATUS_LOGS = "siteStatusLogs"
COLLECTION_CHECKOUT_PROMPTS = "checkoutPrompts"

SITE_CONFIG_DOC_ID = "site"

AUTO_CHECKOUT_REASON = "Outside site for 30 minutes"
CHECKOUT_PROMPT_MESSAGE = "Are you leaving the site? Please check out."
UNKNOWN_SENDER = "Unknown"
