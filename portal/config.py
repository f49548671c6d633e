# portal/config.py
import os

from dotenv import load_dotenv

load_dotenv()


def _to_bool(env_name: str, default: str = "true") -> bool:
    return (os.getenv(env_name, default) or "").strip().lower() in ("1", "true", "yes", "y")


def _csv(env_name: str, default: str) -> list:
    return [p.strip() for p in (os.getenv(env_name) or default).split(",") if p.strip()]


class Config:
    # ---- local persistence ----
    DATA_DIR = os.getenv("PORTAL_DATA_DIR", os.path.abspath("./data"))
    UPLOADS_DIR = os.getenv("PORTAL_UPLOADS_DIR", os.path.abspath("./uploads"))
    BASE_URL = os.getenv("BASE_URL", "http://localhost:3001")
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024

    # ---- Google Drive ----
    GOOGLE_DRIVE_CREDENTIALS = os.getenv("GOOGLE_DRIVE_CREDENTIALS")
    GOOGLE_CREDENTIALS_FILE = os.getenv("GOOGLE_CREDENTIALS_FILE", "google-credentials.json")
    GOOGLE_DRIVE_PARENT_FOLDER_ID = os.getenv("GOOGLE_DRIVE_PARENT_FOLDER_ID")
    FOLDER_CREATE_ATTEMPTS = int(os.getenv("FOLDER_CREATE_ATTEMPTS", "3"))

    # ---- Notion mirror ----
    NOTION_API_KEY = os.getenv("NOTION_API_KEY")
    NOTION_INVESTORS_DB_ID = os.getenv("NOTION_INVESTORS_DB_ID")
    NOTION_DOCUMENTS_DB_ID = os.getenv("NOTION_DOCUMENTS_DB_ID")

    # ---- AI (OpenAI-compatible chat completions) ----
    AI_API_BASE_URL = os.getenv("AI_API_BASE_URL", "https://oi-server.onrender.com")
    AI_API_KEY = os.getenv("AI_API_KEY", "xxx")
    AI_MODEL = os.getenv("AI_MODEL", "openrouter/claude-sonnet-4")
    AI_CUSTOMER_ID = os.getenv("AI_CUSTOMER_ID")
    AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))

    # ---- News ----
    RUN_SCHEDULER = _to_bool("RUN_SCHEDULER", "true")
    NEWS_REFRESH_MINUTES = int(os.getenv("NEWS_REFRESH_MINUTES", "30"))
    NEWS_INITIAL_DELAY_SECONDS = int(os.getenv("NEWS_INITIAL_DELAY_SECONDS", "5"))
    NEWS_TIMEOUT_SECONDS = float(os.getenv("NEWS_TIMEOUT_SECONDS", "30"))

    # ---- HTTP ----
    CORS_ALLOWED_ORIGINS = _csv(
        "CORS_ALLOWED_ORIGINS",
        r"http://localhost:3000,https://localhost:3000,https://.*\.github\.dev,https://.*\.app\.github\.dev",
    )
    FRONTEND_DIST = os.getenv("FRONTEND_DIST", "")
