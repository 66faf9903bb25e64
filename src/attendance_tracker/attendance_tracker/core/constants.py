"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MASK_WIDTH = 31
DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500
RECENT_DAYS = 7
DEFAULT_PHOTO_TYPE = "front"
DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_LOCK_WAIT_TIMEOUT = 10
DEFAULT_CONNECT_TIMEOUT = 10
