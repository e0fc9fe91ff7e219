import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./olma.db")
DB_SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Auth
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

# Meeting offers
DEFAULT_MEETING_DURATION = int(os.getenv("DEFAULT_MEETING_DURATION", "60"))
# used when a skill has no hourly_rate of its own
DEFAULT_HOURLY_RATE = float(os.getenv("DEFAULT_HOURLY_RATE", "25"))

# Violations: number of reports received per category before a user is ban eligible
BAN_THRESHOLD_EASY = int(os.getenv("BAN_THRESHOLD_EASY", "15"))
BAN_THRESHOLD_MEDIUM = int(os.getenv("BAN_THRESHOLD_MEDIUM", "10"))
BAN_THRESHOLD_HARD = int(os.getenv("BAN_THRESHOLD_HARD", "3"))
BAN_THRESHOLDS = {
    "easy": BAN_THRESHOLD_EASY,
    "medium": BAN_THRESHOLD_MEDIUM,
    "hard": BAN_THRESHOLD_HARD,
}
# off by default: crossing a threshold only makes a user ban eligible
AUTO_BAN_ENABLED = os.getenv("AUTO_BAN_ENABLED", "false").lower() == "true"

# Gamification
XP_MEETING_COMPLETED = int(os.getenv("XP_MEETING_COMPLETED", "50"))
XP_POSITIVE_FEEDBACK = int(os.getenv("XP_POSITIVE_FEEDBACK", "10"))

# Rate limiting (requests per window, per user and action)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
RATE_LIMIT_CREATE_OFFER = int(os.getenv("RATE_LIMIT_CREATE_OFFER", "10"))
RATE_LIMIT_SUBMIT_RATING = int(os.getenv("RATE_LIMIT_SUBMIT_RATING", "20"))
RATE_LIMIT_SUBMIT_REPORT = int(os.getenv("RATE_LIMIT_SUBMIT_REPORT", "5"))
RATE_LIMIT_SWEEP = int(os.getenv("RATE_LIMIT_SWEEP", "30"))
# shared store for multi-instance deployments; in-process limiter when unset
REDIS_URL = os.getenv("REDIS_URL")
