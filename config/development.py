from .config import *  # noqa: F401,F403
from .config import env_bool

DEBUG = True

# Apply database/schema.sql on startup (idempotent: CREATE TABLE IF NOT EXISTS)
AUTO_INIT_DB = env_bool("AUTO_INIT_DB", "1")
LOG_LEVEL = "DEBUG"
