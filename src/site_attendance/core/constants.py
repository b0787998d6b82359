"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_FACE_COLLECTION_ID = "workers-faces"
DEFAULT_FACE_MATCH_THRESHOLD = 95.0
DEFAULT_FACE_CALL_TIMEOUT_SECONDS = 10
DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_FULL_DAY_HOURS = 8.0
DEFAULT_MAX_PHOTO_BYTES = 10 * 1024 * 1024
DEFAULT_HISTORY_LIMIT = 60
