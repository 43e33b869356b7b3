"""Application-wide constants for the Classbook platform."""

from __future__ import annotations

BRAND_NAME = "Classbook"

# Wall-clock time format used by availability windows
TIME_FORMAT = "%H:%M"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# Text constraints
MAX_REASON_LENGTH = 255
MAX_TOPIC_ID_LENGTH = 64

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000

# Live attendance window around a class start
LIVE_WINDOW_BEFORE_MINUTES = 30
LIVE_WINDOW_AFTER_MINUTES = 90

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

# Path parameter pattern for ULID identifiers
ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"

API_TITLE = f"{BRAND_NAME} API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Class booking, availability and attendance-credit service"
