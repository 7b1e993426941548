import os
import logging

from dotenv import load_dotenv

# ---------------- Env & Logging ----------------
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("burgerhouse")

SERVICE_NAME = os.getenv("SERVICE_NAME", "Burger House API")

MONGODB_URI = os.getenv("MONGODB_URI") or os.getenv("MONGO_URI")
DB_NAME     = os.getenv("DB_NAME", "burger-house")

JWT_SECRET       = os.getenv("JWT_SECRET", "burger-house-dev-secret-change-me")
JWT_ALGORITHM    = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
AUTH_COOKIE      = "auth_token"
COOKIE_SECURE    = os.getenv("COOKIE_SECURE", "0") == "1"

ALLOWED_ORIGINS = [o.strip() for o in (os.getenv("ALLOWED_ORIGINS") or "").split(",") if o.strip()]
if not ALLOWED_ORIGINS:
    ALLOWED_ORIGINS = ["*"]

APP_URL = (os.getenv("APP_URL") or "http://localhost:3000").rstrip("/")

# ---------------- Mail ----------------
SMTP_HOST     = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT     = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER     = os.getenv("SMTP_USER") or os.getenv("GMAIL_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD") or os.getenv("GMAIL_APP_PASSWORD")
MAIL_FROM     = os.getenv("MAIL_FROM") or (SMTP_USER or "no-reply@burgerhouse.local")
MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "Burger House")
CONTACT_EMAIL  = os.getenv("CONTACT_EMAIL", "burgerhouseweligama@gmail.com")

# ---------------- Seeding ----------------
ADMIN_EMAIL    = (os.getenv("ADMIN_EMAIL") or "admin@burgerhouse.local").strip().lower()
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin1234")
ADMIN_NAME     = os.getenv("ADMIN_NAME", "Burger House Admin")
SEED_MENU      = os.getenv("SEED_MENU", "1") == "1"

# ---------------- Settings ----------------
SSE_HEARTBEAT_SECONDS = float(os.getenv("SSE_HEARTBEAT_SECONDS", "30"))
SSE_CLIENT_QUEUE      = int(os.getenv("SSE_CLIENT_QUEUE", "100"))
VISITOR_DAYS          = int(os.getenv("VISITOR_DAYS", "14"))
RESET_TOKEN_TTL_MIN   = int(os.getenv("RESET_TOKEN_TTL_MIN", "60"))
DEFAULT_PAGE_SIZE     = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE         = 100
