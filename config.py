# config.py
"""
Environment configuration for the AuDiX admin server.

Values are read once at import time from the process environment
(and a local .env file, if present). Required keys are checked by
validate_settings() on boot; the server refuses to start without them.
"""
import logging
import os
from typing import List
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str = "false") -> bool:
     return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def normalize_database_url(raw: str) -> str:
     """
     Adapt a DATABASE_URL for SQLAlchemy.

     - postgres:// and postgresql:// are pinned to the psycopg2 driver
     - Supabase pooler hosts on 5432 are moved to 6543 and get sslmode=require
     - anything else (e.g. sqlite:// in tests) is returned unchanged
     """
     if not raw:
          return raw

     parts = urlsplit(raw)
     if parts.scheme not in ("postgres", "postgresql", "postgresql+psycopg2"):
          return raw
     scheme = "postgresql+psycopg2"

     netloc = parts.netloc
     query = dict(parse_qsl(parts.query))
     host = parts.hostname or ""
     if ".pooler.supabase.com" in host:
          port = parts.port or 5432
          if port == 5432:
               userinfo, _, hostport = netloc.rpartition("@")
               hostport = f"{host}:6543"
               netloc = f"{userinfo}@{hostport}" if userinfo else hostport
          query.setdefault("sslmode", "require")

     return urlunsplit((scheme, netloc, parts.path, urlencode(query), parts.fragment))


def redact_database_url(url: str) -> str:
     """Render a database URL for logs, without the password."""
     parts = urlsplit(url)
     user = parts.username or ""
     host = parts.hostname or ""
     port = f":{parts.port}" if parts.port else ""
     return f"{parts.scheme}://{user}@{host}{port}{parts.path}"


# Admin surface
ADMIN_PASSWORD = os.getenv("AUDIX_ADMIN_PASSWORD", "")
SESSION_SECRET = os.getenv("SESSION_SECRET", "")
SESSION_COOKIE_NAME = "audix_admin_sid"
SESSION_TTL_HOURS = float(os.getenv("SESSION_TTL_HOURS", "24"))
REMEMBER_ME_DAYS = 30

# Live routing service
USER_BASE_URL = os.getenv("AUDIX_USER_BASE_URL", "")
LIVE_TOKEN = os.getenv("AUDIX_LIVE_TOKEN", "")
LIVE_TIMEOUT = float(os.getenv("AUDIX_LIVE_TIMEOUT", "10"))

# Durable store
DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL", ""))
PG_POOL_MAX = int(os.getenv("PG_POOL_MAX", "5"))
SQL_ECHO = _env_bool("SQL_ECHO")

# Monitoring
METRICS_INTERVAL = float(os.getenv("METRICS_INTERVAL", "1.0"))
METRICS_TRACEMALLOC = _env_bool("METRICS_TRACEMALLOC", "true")

PORT = int(os.getenv("PORT", "5004"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

REQUIRED_SETTINGS = {
     "AUDIX_ADMIN_PASSWORD": ADMIN_PASSWORD,
     "SESSION_SECRET": SESSION_SECRET,
     "AUDIX_USER_BASE_URL": USER_BASE_URL,
     "AUDIX_LIVE_TOKEN": LIVE_TOKEN,
     "DATABASE_URL": DATABASE_URL,
}


def missing_settings() -> List[str]:
     """Names of required settings that are unset or empty."""
     return [name for name, value in REQUIRED_SETTINGS.items() if not value]


def validate_settings() -> None:
     """
     Refuse to boot with an incomplete configuration.

     Raises:
          SystemExit: if any required setting is missing
     """
     missing = missing_settings()
     for name in missing:
          logger.error("Missing %s in environment (.env)", name)
     if missing:
          raise SystemExit(1)
