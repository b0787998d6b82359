"""Settings shared by every environment, read from the process environment.

Environment modules import from here and override what differs.
"""

import os


def env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "site_attendance"),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Face directory (AWS Rekognition)
AWS_REGION = os.getenv("AWS_REGION", "ap-south-1")
FACE_COLLECTION_ID = os.getenv("FACE_COLLECTION_ID", "workers-faces")
FACE_MATCH_THRESHOLD = float(os.getenv("FACE_MATCH_THRESHOLD", "95"))
FACE_CALL_TIMEOUT_SECONDS = float(os.getenv("FACE_CALL_TIMEOUT_SECONDS", "10"))
ENSURE_FACE_COLLECTION = env_bool("ENSURE_FACE_COLLECTION", "1")

# Photo storage: S3 when USE_S3, otherwise UPLOAD_DIR served under /uploads
USE_S3 = env_bool("USE_S3")
S3_BUCKET = os.getenv("S3_BUCKET", "")
S3_REGION = os.getenv("S3_REGION", AWS_REGION)
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
MAX_PHOTO_BYTES = int(os.getenv("MAX_PHOTO_BYTES", str(10 * 1024 * 1024)))

# Attendance day policy: project timezone, else this one
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Asia/Kolkata")
FULL_DAY_HOURS = float(os.getenv("FULL_DAY_HOURS", "8"))

AUTO_INIT_DB = env_bool("AUTO_INIT_DB")
AUTO_SEED_DB = env_bool("AUTO_SEED_DB")
