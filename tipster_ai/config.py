"""
Application Configuration
Settings loaded from the environment (and a local .env file when present).
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tipster_persistence.db")

# API Keys
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
FOOTBALL_DATA_ORG_KEY = os.getenv("FOOTBALL_DATA_ORG_KEY")

# Generation service
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
AI_MIN_INTERVAL_SECONDS = float(os.getenv("AI_MIN_INTERVAL_SECONDS", "4.0"))
AI_THROTTLE_COOLDOWN_SECONDS = float(os.getenv("AI_THROTTLE_COOLDOWN_SECONDS", "12.0"))
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "45.0"))

# Picks
MAX_STAKE = 10.0
UPCOMING_DAYS = 3  # Lookahead window for fixture listings
UPCOMING_LIMIT = 8  # Max fixtures returned per listing
HISTORY_LIMIT = 8  # Settled picks fed back into the analysis prompt
FORM_LIMIT = 5  # Recent results fed into the analysis prompt

# Bankroll: approximate net return of a winning unit
BANKROLL_PAYOUT_RATIO = float(os.getenv("BANKROLL_PAYOUT_RATIO", "0.85"))

# Logging Configuration
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
