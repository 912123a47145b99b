"""Runtime configuration, read once from the environment."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Bookings starting before this hour of day must have a coach assigned
EARLY_BOOKING_HOUR_LIMIT = int(os.getenv("EARLY_BOOKING_HOUR_LIMIT", "8"))

# Set to "false" to stop writing audit log entries (tests, local runs)
AUDIT_LOG_ENABLED = os.getenv("AUDIT_LOG_ENABLED", "true").lower() not in ("0", "false", "no")

# Turnaround time after every boat booking; facilities are exempt.
CLEANUP_MINUTES = 15

# Resource-name fragments that mark a facility (no turnaround needed).
FACILITY_NAME_FRAGMENTS = ("彈簧床", "trampoline")
