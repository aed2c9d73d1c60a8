"""Application configuration and settings."""
import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env (if present)
load_dotenv()


def parse_ip_list(raw: str) -> List[str]:
    """Split a comma separated list of IPs, ignoring blanks."""
    return [ip.strip() for ip in (raw or "").split(",") if ip.strip()]


# Active Directory lookup - anything other than "true" disables it
AD_LOOKUP_ACTIVE = os.getenv("AD_LOOKUP_ACTIVE", "false").strip().lower() == "true"

# Directory connection settings, required when lookup is active
AD_URL = os.getenv("AD_URL")
AD_BASE_DN = os.getenv("AD_BASE_DN")
AD_USERNAME = os.getenv("AD_USERNAME")
AD_PASSWORD = os.getenv("AD_PASSWORD")

# Header set by the authenticating proxy
AD_TRUSTED_HEADER = os.getenv("AD_TRUSTED_HEADER") or "X-Control-Header"

# Empty list means requests from any IP are trusted (dangerous!)
AD_TRUSTED_PROXY_IPS = parse_ip_list(os.getenv("AD_TRUSTED_PROXY_IPS", ""))

# Development only: use this value as user name for every request
AD_OVERRIDE_USER_WITH_VALUE = os.getenv("AD_OVERRIDE_USER_WITH_VALUE")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))
# Trust policy decisions are kept longer, one file per day
SECURITY_LOG_DAYS = int(os.getenv("SECURITY_LOG_DAYS", "90"))

# Security configuration - REQUIRED, no default for security
ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY")
if not ADMIN_API_KEY:
    raise ValueError(
        "ADMIN_API_KEY environment variable is required. "
        "Please set it in your .env file or environment variables."
    )
