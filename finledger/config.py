"""
Environment-driven configuration for the ledger service.

Values are read once at import time (after loading a local .env file) and
exposed as plain module constants, e.g.:

     from finledger import config
     engine = create_db_engine(config.DATABASE_URL)
"""
import os
from typing import List, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
     return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def build_database_url(env: Optional[dict] = None) -> str:
     """
     Resolve the SQLAlchemy URL.

     DATABASE_URL wins when set. Otherwise, if DB_SERVER is configured, an
     MS SQL Server URL (pymssql driver) is assembled from the DB_* variables.
     Falls back to a local SQLite file.
     """
     env = os.environ if env is None else env
     url = env.get("DATABASE_URL")
     if url:
          return url

     server = env.get("DB_SERVER")
     if server:
          safe_user = quote_plus(env.get("DB_USER") or "")
          safe_pass = quote_plus(env.get("DB_PASS") or "")
          port = env.get("DB_PORT") or "1433"
          name = env.get("DB_NAME") or ""
          return f"mssql+pymssql://{safe_user}:{safe_pass}@{server}:{port}/{name}"

     return "sqlite:///./finledger.db"


def parse_origins(raw: Optional[str]) -> List[str]:
     """Split a comma separated CORS_ORIGINS value; empty means allow all."""
     origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
     return origins or ["*"]


DATABASE_URL = build_database_url()
SQL_ECHO = _env_bool("SQL_ECHO")

API_PREFIX = os.getenv("API_PREFIX", "/api").rstrip("/")
CORS_ORIGINS = parse_origins(os.getenv("CORS_ORIGINS"))

RECENT_ACTIVITY_LIMIT = int(os.getenv("RECENT_ACTIVITY_LIMIT", "50"))
SEED_SAMPLE_DATA = _env_bool("SEED_SAMPLE_DATA")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
