import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Local SQLite file unless a real database is configured
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./completion_monitor.db")

# Redis (ARQ worker + cross-process run lock)
REDIS_URL = os.getenv("REDIS_URL")

# Auto-complete monitor scheduling
AUTO_COMPLETE_INTERVAL_SECONDS = int(os.getenv("AUTO_COMPLETE_INTERVAL_SECONDS", "300"))
# Lock TTL must outlive a slow run but expire if the process dies mid-run
AUTO_COMPLETE_LOCK_TTL_SECONDS = int(os.getenv("AUTO_COMPLETE_LOCK_TTL_SECONDS", "600"))
AUTO_COMPLETE_LOCK_KEY = os.getenv("AUTO_COMPLETE_LOCK_KEY", "locks:auto_complete_monitor")

# Fallbacks used when the active PricingConfig row leaves a field empty
DEFAULT_HOURS_AFTER_END = 4
DEFAULT_REMINDER_INTERVALS = [30, 60, 120, 180, 210]  # minutes after scheduled end
DEFAULT_AUTO_APPROVAL_HOURS = 24

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Kleanr <noreply@kleanr.app>")

# Expo push notifications
EXPO_PUSH_URL = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
EXPO_ACCESS_TOKEN = os.getenv("EXPO_ACCESS_TOKEN")  # Optional, only for enhanced push security
